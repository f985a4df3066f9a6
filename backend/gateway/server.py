"""
API gateway: combines the auth and events blueprints.
This is the local entrypoint for development.
"""

import logging
from typing import Any, Dict, Optional

from flask import Flask, jsonify
from flask_cors import CORS

from backend.auth_service.hashing import PasswordHasher
from backend.auth_service.models import UserStore
from backend.auth_service.routes import auth_bp
from backend.auth_service.utils import TokenService
from backend.config import load_config
from backend.database.db_connection import Database
from backend.events_service.models import EventStore, RegistrationLedger
from backend.events_service.routes import events_bp
from backend.extensions import init_services

# Basic console logging during API requests
logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")


def build_services(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Construct every dependency object once.

    Args:
        config (dict): Needs DATABASE_URL and JWT_SECRET.

    Returns:
        dict: db, hasher, tokens, users, events, registrations.
    """
    db = Database(config["DATABASE_URL"])
    hasher = PasswordHasher()

    return {
        "db": db,
        "hasher": hasher,
        "tokens": TokenService(config["JWT_SECRET"]),
        "users": UserStore(db, hasher),
        "events": EventStore(db),
        "registrations": RegistrationLedger(db),
    }


def create_app(config: Optional[Dict[str, Any]] = None, services: Optional[Dict[str, Any]] = None) -> Flask:
    """
    Application factory for creating the Flask app.

    Args:
        config (dict, optional): Overrides for load_config(). Loaded from the environment when omitted.
        services (dict, optional): Prebuilt service objects (used by tests).

    Returns:
        Flask: The configured Flask application.
    """
    app = Flask(__name__)

    if config is None:
        config = load_config()
    app.config.from_mapping(config)

    CORS(app, resources={
        r"/*": {
            "origins": app.config.get("CORS_ORIGINS", []),
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
            "expose_headers": ["Content-Type", "Authorization"],
            "supports_credentials": True
        }
    })

    init_services(app, services if services is not None else build_services(config))

    # --- REGISTER BLUEPRINTS ---
    app.register_blueprint(auth_bp)
    app.register_blueprint(events_bp, url_prefix="/events")
    logging.info("All blueprints registered successfully.")

    # --- BASIC HEALTH CHECKPOINTS ---
    @app.route("/")
    def ping():
        """
        Root URL for simple 'online' check.
        """
        return jsonify({"status": "gateway_ok"}), 200

    @app.route("/health")
    def health():
        """
        Health check endpoint.
        """
        return jsonify({"status": "ok"}), 200

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=app.config["GATEWAY_PORT"], debug=True)
