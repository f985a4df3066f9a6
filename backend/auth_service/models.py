"""
Credential store for user accounts.

Each user is a row in the 'users' table: id, email and an Argon2 password
hash. The plaintext password is never stored and the hash never leaves
this module except for verification.
"""

import logging
from typing import Tuple

import psycopg2
import psycopg2.errors

from backend.auth_service.hashing import PasswordHasher
from backend.database.db_connection import Database
from backend.errors import DuplicateEmail, InvalidCredentials, NotFound, StorageError


class UserStore:
    """Creates and looks up users. Emails are matched exactly (case-sensitive)."""

    def __init__(self, db: Database, hasher: PasswordHasher) -> None:
        self.db = db
        self.hasher = hasher

    def create_user(self, email: str, password: str) -> int:
        """
        Insert a new user with a hashed password.

        Args:
            email (str): Unique email address.
            password (str): Plaintext password; only its hash is stored.

        Returns:
            int: The new user's id.

        Raises:
            DuplicateEmail: If the email is already registered.
            HashingError: If the password could not be hashed.
            StorageError: For any other database failure.
        """
        pw_hash = self.hasher.hash(password)

        sql = "INSERT INTO users (email, password_hash) VALUES (%s, %s) RETURNING id;"

        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (email, pw_hash))
                    user = cur.fetchone()
        except psycopg2.errors.UniqueViolation as e:
            raise DuplicateEmail("Email already exists") from e
        except psycopg2.Error as e:
            logging.error(f"Database error creating user: {e}")
            raise StorageError("Could not save user") from e

        return user["id"]

    def find_by_email(self, email: str) -> Tuple[int, str]:
        """
        Look up a user by exact email.

        Returns:
            tuple: (user_id, stored password hash).

        Raises:
            NotFound: If no user has this email.
            StorageError: If the query fails.
        """
        sql = "SELECT id, password_hash FROM users WHERE email = %s;"

        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (email,))
                    user = cur.fetchone()
        except psycopg2.Error as e:
            logging.error(f"Database error looking up user: {e}")
            raise StorageError("Could not fetch user") from e

        if not user:
            raise NotFound("User not found")
        return user["id"], user["password_hash"]

    def authenticate(self, email: str, password: str) -> int:
        """
        Check a login attempt and return the user id.

        Raises:
            InvalidCredentials: Unknown email or wrong password (same error for both).
            StorageError: If the lookup fails.
        """
        try:
            user_id, stored_hash = self.find_by_email(email)
        except NotFound as e:
            raise InvalidCredentials("Invalid email or password") from e

        if not self.hasher.verify(password, stored_hash):
            raise InvalidCredentials("Invalid email or password")
        return user_id
