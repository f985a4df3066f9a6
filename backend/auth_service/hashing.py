"""
Password hashing with Argon2id.
"""

import argon2
from argon2.exceptions import HashingError as Argon2HashingError
from argon2.exceptions import InvalidHashError, VerificationError

from backend.errors import HashingError

# Fixed cost parameters (RFC 9106 low-memory profile).
TIME_COST = 3
MEMORY_COST = 64 * 1024  # KiB
PARALLELISM = 4


class PasswordHasher:
    """
    One-way password digests. Every hash embeds its own random salt, so
    hashing the same plaintext twice gives two different strings.
    """

    def __init__(
        self,
        time_cost: int = TIME_COST,
        memory_cost: int = MEMORY_COST,
        parallelism: int = PARALLELISM,
    ) -> None:
        self._ph = argon2.PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
        )

    def hash(self, plaintext: str) -> str:
        """
        Hash a plaintext password for storage.

        Raises:
            HashingError: If Argon2 fails to produce a digest.
        """
        try:
            return self._ph.hash(plaintext)
        except Argon2HashingError as e:
            raise HashingError("Password hashing failed") from e

    def verify(self, plaintext: str, stored_hash: str) -> bool:
        """
        Check a plaintext against a stored hash.

        Returns False for a wrong password and for anything that is not a
        valid Argon2 hash. Never raises.
        """
        if not isinstance(stored_hash, str) or not stored_hash or not stored_hash.isascii():
            return False
        try:
            return self._ph.verify(stored_hash, plaintext)
        except (VerificationError, InvalidHashError):
            return False
