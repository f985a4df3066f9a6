"""
Authentication service route handlers.

Provides routes for:
- User signup
- User login

Password hashing lives in `auth_service.hashing`, JWT logic in
`auth_service.utils`, and storage in `auth_service.models`.
"""

import logging
from typing import Any, Tuple

from flask import Blueprint, Response, jsonify, request

from backend.errors import (
    DuplicateEmail,
    HashingError,
    InvalidCredentials,
    StorageError,
    ValidationError,
)
from backend.extensions import get_service

auth_bp = Blueprint("auth", __name__)


# --- REQUEST LOGGING ---
@auth_bp.before_request
def before_request() -> None:
    """
    Log method and path of every request to the authentication service.
    Headers and bodies are left out; they carry passwords and tokens.
    """
    logging.info(f"[Auth] Incoming {request.method} {request.path}")


@auth_bp.after_request
def after_request(response: Response) -> Response:
    """
    Log the response status code for every request.

    Args:
        response (Response): The Flask response object.

    Returns:
        Response: The passed-through response object.
    """
    logging.info(f"[Auth] Response {response.status}")
    return response


def parse_credentials(data: Any) -> Tuple[str, str]:
    """
    Validate a signup/login body.

    Returns:
        tuple: (email, password). The email is trimmed but otherwise kept as sent.

    Raises:
        ValidationError: If the body is not an object or a field is missing.
    """
    if not isinstance(data, dict):
        raise ValidationError("Could not parse request data.")

    email = data.get("email")
    password = data.get("password")

    if not isinstance(email, str) or not email.strip():
        raise ValidationError("Email and password required")
    if not isinstance(password, str) or not password:
        raise ValidationError("Email and password required")
    if "\x00" in email or "\x00" in password:
        raise ValidationError("Email and password cannot contain NUL characters")

    return email.strip(), password


# --- SIGNUP ---
@auth_bp.route("/signup", methods=["POST"])
def signup() -> Tuple[Response, int]:
    """
    Create a new user account.

    Expects a JSON body with:
    - email (str): Unique email address.
    - password (str)

    Returns:
        201: JSON with message and user_id.
        400: Missing fields or email already exists.
        500: Server-side error (hashing or database).
    """
    try:
        email, password = parse_credentials(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        user_id = get_service("users").create_user(email, password)
    except DuplicateEmail:
        return jsonify({"error": "Email already exists"}), 400
    except HashingError:
        return jsonify({"error": "Password hashing failed"}), 500
    except StorageError:
        return jsonify({"error": "Could not save user."}), 500

    return jsonify({"message": "User created successfully.", "user_id": user_id}), 201


# --- LOGIN ---
@auth_bp.route("/login", methods=["POST"])
def login() -> Tuple[Response, int]:
    """
    Authenticate a user and return a JWT.

    Expects a JSON body with:
    - email (str)
    - password (str)

    Returns:
        200: JSON with message and token.
        400: Missing credentials.
        401: Invalid credentials (wrong password or email).
        500: Database error.
    """
    try:
        email, password = parse_credentials(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        user_id = get_service("users").authenticate(email, password)
    except InvalidCredentials:
        return jsonify({"error": "Invalid email or password."}), 401
    except StorageError:
        return jsonify({"error": "Login failed"}), 500

    token = get_service("tokens").issue(user_id)

    return jsonify({"message": "Login successful!", "token": token}), 200
