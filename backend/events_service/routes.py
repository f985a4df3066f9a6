"""
Events service routes: create, read, update, delete events, and registration.
Handles event lifecycle management and participation.

Reads are public. Every mutation goes through the login_required gate and
takes the acting user from the token, never from the request body.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from flask import Blueprint, Response, jsonify, request

from backend.auth_service.utils import current_user_id, login_required
from backend.errors import NotFound, StorageError, ValidationError
from backend.extensions import get_service

events_bp = Blueprint("events", __name__)

# --- CONSTANTS FOR VALIDATION ---
TEXT_FIELDS = ("name", "description", "location")


# --- REQUEST LOGGING ---
@events_bp.before_request
def before_request() -> None:
    logging.info(f"[Events] Incoming {request.method} {request.path}")


@events_bp.after_request
def after_request(response: Response) -> Response:
    logging.info(f"[Events] Response {response.status}")
    return response


def parse_dt(val: Optional[str]) -> Optional[datetime]:
    """
    Safely parse an ISO-8601 or datetime-local string to a datetime object.

    Naive values are taken as UTC.

    Args:
        val (str): The date string to parse.

    Returns:
        datetime: The parsed datetime, or None if invalid.
    """
    if not val or not isinstance(val, str):
        return None
    try:
        # Handles 'YYYY-MM-DDTHH:MM' and '...Z' or '...+00:00'
        if val.endswith('Z'):
            val = val[:-1] + '+00:00'
        parsed = datetime.fromisoformat(val)
    except (ValueError, TypeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_event_payload(data: Any) -> Dict[str, Any]:
    """
    Validate an event body for create or update.

    Only name, description, location and date_time are read. Fields such
    as id or owner_id in the body are ignored.

    Raises:
        ValidationError: If the body is not an object, a text field is
                         missing or empty, or date_time is not ISO-8601.
    """
    if not isinstance(data, dict):
        raise ValidationError("Could not parse request data.")

    fields: Dict[str, Any] = {}
    for key in TEXT_FIELDS:
        value = data.get(key)
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"{key} is required")
        if "\x00" in value:
            raise ValidationError(f"{key} cannot contain NUL characters")
        fields[key] = value

    date_time = parse_dt(data.get("date_time"))
    if date_time is None:
        raise ValidationError("date_time is required. Use ISO-8601.")
    fields["date_time"] = date_time

    return fields


def serialize_event(event: Dict[str, Any]) -> Dict[str, Any]:
    """Make an event row JSON friendly (ISO-8601 date_time)."""
    out = dict(event)
    if isinstance(out.get("date_time"), datetime):
        out["date_time"] = out["date_time"].isoformat()
    return out


@events_bp.route("/", methods=["GET"])
def list_events() -> Tuple[Response, int]:
    """
    Return all events. Public.

    Returns:
        200: List of event objects.
        500: Database error.
    """
    try:
        events = get_service("events").list_all()
    except StorageError:
        return jsonify({"error": "Could not fetch events. Try again later."}), 500

    return jsonify([serialize_event(e) for e in events]), 200


@events_bp.route("/<int:event_id>", methods=["GET"])
def get_event(event_id: int) -> Tuple[Response, int]:
    """
    Get a single event by ID. Public.

    Returns:
        200: Event object.
        404: Event not found.
    """
    try:
        event = get_service("events").get_by_id(event_id)
    except NotFound:
        return jsonify({"error": "Event not found"}), 404
    except StorageError:
        return jsonify({"error": "Could not fetch event."}), 500

    return jsonify(serialize_event(event)), 200


@events_bp.route("/", methods=["POST"])
@login_required
def create_event() -> Tuple[Response, int]:
    """
    Create an event owned by the authenticated user.

    Returns:
        201: {"message": ..., "event": {...}}
        400: Validation error.
        401: Missing or invalid token.
        500: Server error.
    """
    try:
        fields = parse_event_payload(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        event = get_service("events").create(fields, current_user_id())
    except StorageError:
        return jsonify({"error": "Could not create event. Try again later."}), 500

    return jsonify({"message": "Event created!", "event": serialize_event(event)}), 201


@events_bp.route("/<int:event_id>", methods=["PUT"])
@login_required
def update_event(event_id: int) -> Tuple[Response, int]:
    """
    Replace the name, description, location and date_time of an event.

    Any authenticated user may update; ownership is recorded but not enforced here.

    Returns:
        200: Updated event.
        400: Validation error.
        404: Event not found.
    """
    try:
        fields = parse_event_payload(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        event = get_service("events").update(event_id, fields)
    except NotFound:
        return jsonify({"error": "Event not found"}), 404
    except StorageError:
        return jsonify({"error": "Could not update event."}), 500

    return jsonify({"message": "Event updated successfully!", "event": serialize_event(event)}), 200


@events_bp.route("/<int:event_id>", methods=["DELETE"])
@login_required
def delete_event(event_id: int) -> Tuple[Response, int]:
    """
    Delete an event and its registrations.
    """
    try:
        get_service("events").delete(event_id)
    except NotFound:
        return jsonify({"error": "Event not found"}), 404
    except StorageError:
        return jsonify({"error": "Could not delete the event."}), 500

    return jsonify({"message": "Event deleted successfully!"}), 200


@events_bp.route("/<int:event_id>/register", methods=["POST"])
@login_required
def register_for_event(event_id: int) -> Tuple[Response, int]:
    """
    Register the authenticated user for an event.
    Registering again is accepted and does not add a second row.
    """
    try:
        get_service("registrations").register(event_id, current_user_id())
    except NotFound:
        return jsonify({"error": "Event not found"}), 404
    except StorageError:
        return jsonify({"error": "Could not register user for event."}), 500

    return jsonify({"message": "Registered!"}), 201


@events_bp.route("/<int:event_id>/register", methods=["DELETE"])
@login_required
def cancel_registration(event_id: int) -> Tuple[Response, int]:
    try:
        get_service("registrations").cancel(event_id, current_user_id())
    except StorageError:
        return jsonify({"error": "Could not cancel registration."}), 500

    return jsonify({"message": "Cancelled!"}), 200


@events_bp.route("/<int:event_id>/registrations", methods=["GET"])
@login_required
def list_registrations(event_id: int) -> Tuple[Response, int]:
    """
    List the ids of users registered for an event.

    Returns:
        200: {"event_id": int, "user_ids": [int, ...]}
        404: Event not found.
    """
    try:
        user_ids = get_service("registrations").list_for_event(event_id)
    except NotFound:
        return jsonify({"error": "Event not found"}), 404
    except StorageError:
        return jsonify({"error": "Failed to retrieve registrations"}), 500

    return jsonify({"event_id": event_id, "user_ids": user_ids}), 200
