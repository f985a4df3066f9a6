"""
Access to the dependency objects built by the application factory.

create_app() constructs the database handle, hasher, token service and
stores once, and keeps them in app.extensions["eventgate"]. Route handlers
look them up here instead of importing module-level globals.
"""

from typing import Any, Dict

from flask import current_app

EXTENSION_KEY = "eventgate"


def init_services(app, services: Dict[str, Any]) -> None:
    """
    Attach the service objects to a Flask app.

    Args:
        app (Flask): The application.
        services (dict): Keys "users", "tokens", "events", "registrations"
                         (and optionally "db", "hasher").
    """
    app.extensions[EXTENSION_KEY] = services


def get_service(name: str) -> Any:
    """Return one service object of the current app, e.g. get_service("events")."""
    return current_app.extensions[EXTENSION_KEY][name]
