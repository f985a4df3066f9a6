"""
Error types shared by the auth and events services.

Stores and services raise these; the route handlers turn them into
JSON responses of the form {"error": "..."}.
"""


class EventGateError(Exception):
    """Base class for every error raised by the backend core."""


class ValidationError(EventGateError):
    """Malformed or missing request input, raised before any store call."""


class DuplicateEmail(EventGateError):
    """Signup with an email that already has an account."""


class NotFound(EventGateError):
    """The requested user or event does not exist."""


class InvalidCredentials(EventGateError):
    """Login failed. Unknown email and wrong password are not told apart."""


class InvalidToken(EventGateError):
    """Token failed signature, algorithm, expiry or claim checks."""


class Unauthorized(EventGateError):
    """Request carried no usable credential."""


class HashingError(EventGateError):
    """The password hasher could not produce a digest."""


class StorageError(EventGateError):
    """The database rejected or failed an operation."""
