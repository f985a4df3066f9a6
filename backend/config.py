"""
Configuration loading.
Reads the .env file once and returns a plain dict for Flask's app.config.
"""

import os
from typing import Any, Dict

from dotenv import load_dotenv

load_dotenv()

DEFAULT_GATEWAY_PORT = 5050
DEFAULT_CORS_ORIGINS = [
    "http://localhost:5500",  # Local development (some editors)
    "http://localhost:5050",  # Gateway served from same host
    "http://localhost:8080",  # Local static server
]


def load_config() -> Dict[str, Any]:
    """
    Build the application config from environment variables.

    Returns:
        dict: DATABASE_URL, JWT_SECRET, GATEWAY_PORT and CORS_ORIGINS.

    Raises:
        RuntimeError: If DATABASE_URL or JWT_SECRET is missing.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise RuntimeError("DATABASE_URL is not set. Please set the environment variable.")

    jwt_secret = os.getenv("JWT_SECRET")
    if not jwt_secret:
        raise RuntimeError("JWT_SECRET is missing. Set it in .env")

    origins = os.getenv("CORS_ORIGINS")
    if origins:
        cors_origins = [o.strip() for o in origins.split(",") if o.strip()]
    else:
        cors_origins = list(DEFAULT_CORS_ORIGINS)

    return {
        "DATABASE_URL": database_url,
        "JWT_SECRET": jwt_secret,
        "GATEWAY_PORT": int(os.getenv("GATEWAY_PORT", DEFAULT_GATEWAY_PORT)),
        "CORS_ORIGINS": cors_origins,
    }
