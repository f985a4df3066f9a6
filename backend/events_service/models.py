"""
Event store and registration ledger.

Events live in the 'events' table; who is registered for what lives in
'registrations', one row per (event_id, user_id) pair.
"""

import logging
from typing import Any, Dict, List

import psycopg2

from backend.database.db_connection import Database
from backend.errors import NotFound, StorageError

EVENT_COLUMNS = "id, name, description, location, date_time, owner_id"


class EventStore:
    """CRUD on events. The owner is fixed at creation and never updated."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def create(self, fields: Dict[str, Any], owner_id: int) -> Dict[str, Any]:
        """
        Insert an event owned by owner_id.

        Args:
            fields (dict): name, description, location, date_time.
            owner_id (int): The authenticated creator. Any owner in `fields` is ignored.

        Returns:
            dict: The stored event including its new id.
        """
        sql = f"""
            INSERT INTO events (name, description, location, date_time, owner_id)
            VALUES (%s, %s, %s, %s, %s)
            RETURNING {EVENT_COLUMNS};
        """
        params = (fields["name"], fields["description"], fields["location"], fields["date_time"], owner_id)

        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, params)
                    event = cur.fetchone()
        except psycopg2.Error as e:
            logging.error(f"Database error creating event: {e}")
            raise StorageError("Could not create event") from e

        return dict(event)

    def get_by_id(self, event_id: int) -> Dict[str, Any]:
        """
        Fetch one event.

        Raises:
            NotFound: If no event has this id.
        """
        sql = f"SELECT {EVENT_COLUMNS} FROM events WHERE id = %s;"

        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (event_id,))
                    event = cur.fetchone()
        except psycopg2.Error as e:
            logging.error(f"Database error getting event {event_id}: {e}")
            raise StorageError("Could not fetch event") from e

        if not event:
            raise NotFound("Event not found")
        return dict(event)

    def list_all(self) -> List[Dict[str, Any]]:
        """Return every event. No pagination, no guaranteed order."""
        sql = f"SELECT {EVENT_COLUMNS} FROM events;"

        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql)
                    rows = [dict(r) for r in cur.fetchall()]
        except psycopg2.Error as e:
            logging.error(f"Database error listing events: {e}")
            raise StorageError("Could not fetch events") from e

        return rows

    def update(self, event_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Overwrite name, description, location and date_time of an event.

        id and owner_id are left alone.

        Raises:
            NotFound: If no event has this id.
        """
        sql = f"""
            UPDATE events
            SET name = %s, description = %s, location = %s, date_time = %s
            WHERE id = %s
            RETURNING {EVENT_COLUMNS};
        """
        params = (fields["name"], fields["description"], fields["location"], fields["date_time"], event_id)

        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, params)
                    event = cur.fetchone()
        except psycopg2.Error as e:
            logging.error(f"Database error updating event {event_id}: {e}")
            raise StorageError("Could not update event") from e

        if not event:
            raise NotFound("Event not found")
        return dict(event)

    def delete(self, event_id: int) -> None:
        """
        Permanently delete an event together with its registrations.

        Both deletes run in one transaction.

        Raises:
            NotFound: If no event has this id.
        """
        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute("DELETE FROM events WHERE id = %s;", (event_id,))
                    if cur.rowcount == 0:
                        raise NotFound("Event not found")
                    cur.execute("DELETE FROM registrations WHERE event_id = %s;", (event_id,))
        except psycopg2.Error as e:
            logging.error(f"Database error deleting event {event_id}: {e}")
            raise StorageError("Could not delete event") from e


class RegistrationLedger:
    """Many-to-many link between users and the events they registered for."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def register(self, event_id: int, user_id: int) -> bool:
        """
        Register a user for an event.

        The insert is a single statement guarded by the (event_id, user_id)
        primary key, so concurrent or repeated calls leave one row.

        Returns:
            bool: True if a new registration was stored, False if it already existed.

        Raises:
            NotFound: If the event does not exist.
        """
        sql = """
            INSERT INTO registrations (event_id, user_id)
            SELECT id, %s FROM events WHERE id = %s
            ON CONFLICT (event_id, user_id) DO NOTHING;
        """

        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (user_id, event_id))
                    if cur.rowcount > 0:
                        return True

                    # Nothing inserted: either already registered or no such event.
                    cur.execute("SELECT 1 FROM events WHERE id = %s;", (event_id,))
                    if not cur.fetchone():
                        raise NotFound("Event not found")
        except psycopg2.Error as e:
            logging.error(f"Database error registering for event {event_id}: {e}")
            raise StorageError("Could not register user for event") from e

        return False

    def cancel(self, event_id: int, user_id: int) -> None:
        """Remove a registration. Removing one that does not exist is a no-op."""
        sql = "DELETE FROM registrations WHERE event_id = %s AND user_id = %s;"

        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (event_id, user_id))
        except psycopg2.Error as e:
            logging.error(f"Database error cancelling registration for event {event_id}: {e}")
            raise StorageError("Could not cancel registration") from e

    def list_for_event(self, event_id: int) -> List[int]:
        """
        Return the ids of users registered for an event, ascending.

        Raises:
            NotFound: If the event does not exist.
        """
        try:
            with self.db.transaction() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT 1 FROM events WHERE id = %s;", (event_id,))
                    if not cur.fetchone():
                        raise NotFound("Event not found")

                    cur.execute(
                        "SELECT user_id FROM registrations WHERE event_id = %s ORDER BY user_id;",
                        (event_id,),
                    )
                    user_ids = [row["user_id"] for row in cur.fetchall()]
        except psycopg2.Error as e:
            logging.error(f"Database error listing registrations for event {event_id}: {e}")
            raise StorageError("Could not fetch registrations") from e

        return user_ids
