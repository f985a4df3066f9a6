"""
Shared authentication helpers.
Provides token creation and verification, and the login_required gate.
"""

import logging
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Callable, Optional

import jwt
from flask import g, jsonify, request

from backend.errors import InvalidToken, Unauthorized
from backend.extensions import get_service

ALGORITHM = "HS256"
TOKEN_LIFETIME = timedelta(hours=2)
UNAUTHORIZED_MESSAGE = "Not authorized."


class TokenService:
    """
    Issues and verifies stateless HS256 session tokens.

    The signing key is fixed at construction. There is no revocation list:
    a token stays valid until its exp claim passes.
    """

    def __init__(self, secret: str, lifetime: timedelta = TOKEN_LIFETIME) -> None:
        if not secret:
            raise ValueError("A signing secret is required")
        self._secret = secret
        self.lifetime = lifetime

    # --- JWT CREATION ---
    def issue(self, user_id: int) -> str:
        """
        Generates a new JWT for a given user.

        Args:
            user_id (int): The unique ID of the user.

        Returns:
            str: Encoded JWT string.
        """
        now = datetime.now(timezone.utc)

        payload = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + self.lifetime,
        }

        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    # --- JWT VALIDATION ---
    def verify(self, token: str) -> int:
        """
        Decode a token and return the user id it was issued for.

        Only HS256 is accepted, whatever the token header claims.

        Raises:
            InvalidToken: For any failure (signature, algorithm, expiry,
                          missing or malformed claims). The cause is not exposed.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.PyJWTError as e:
            raise InvalidToken("invalid token") from e

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject.isdecimal():
            raise InvalidToken("invalid token")

        user_id = int(subject)
        if user_id <= 0:
            raise InvalidToken("invalid token")
        return user_id


def extract_token(header: Optional[str]) -> Optional[str]:
    """
    Pull the credential out of an Authorization header value.

    Accepts "Bearer <token>" or a bare token. Returns None when nothing usable is present.
    """
    if not header:
        return None
    scheme, _, rest = header.strip().partition(" ")
    if scheme.lower() == "bearer":
        header = rest
    return header.strip() or None


def authenticate_request() -> int:
    """
    Resolve the user id behind the current request's Authorization header.

    Raises:
        Unauthorized: Header missing or empty (the token service is not
                      consulted), or the token failed verification.
    """
    token = extract_token(request.headers.get("Authorization"))
    if token is None:
        raise Unauthorized(UNAUTHORIZED_MESSAGE)

    try:
        return get_service("tokens").verify(token)
    except InvalidToken as e:
        logging.info(f"[Auth] Rejected token on {request.method} {request.path}")
        raise Unauthorized(UNAUTHORIZED_MESSAGE) from e


def login_required(view: Callable) -> Callable:
    """
    Reject the request with 401 unless it carries a valid token.

    On success the authenticated user id is stored in g.user_id before the
    view runs. This is the only place that sets it.
    """

    @wraps(view)
    def wrapped(*args, **kwargs):
        try:
            user_id = authenticate_request()
        except Unauthorized as e:
            return jsonify({"error": str(e)}), 401

        g.user_id = user_id
        return view(*args, **kwargs)

    return wrapped


def current_user_id() -> int:
    """Return the id the auth gate resolved for this request."""
    return g.user_id
