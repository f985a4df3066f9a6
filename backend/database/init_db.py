"""
Schema setup for the users, events and registrations tables.

Run directly to create the tables against DATABASE_URL:
    python -m backend.database.init_db
"""

import logging

from backend.database.db_connection import Database

SCHEMA = """
    CREATE TABLE IF NOT EXISTS users (
        id SERIAL PRIMARY KEY,
        email TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS events (
        id SERIAL PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT NOT NULL,
        location TEXT NOT NULL,
        date_time TIMESTAMPTZ NOT NULL,
        owner_id INTEGER
    );

    -- One row per (event, user); the primary key makes registering idempotent.
    CREATE TABLE IF NOT EXISTS registrations (
        event_id INTEGER NOT NULL,
        user_id INTEGER NOT NULL,
        PRIMARY KEY (event_id, user_id)
    );
"""


def init_db(db: Database) -> None:
    """
    Create every table if it does not exist yet.

    Args:
        db (Database): Connection factory for the target database.
    """
    with db.transaction() as conn:
        with conn.cursor() as cur:
            cur.execute(SCHEMA)
    logging.info("Database schema is ready.")


if __name__ == "__main__":
    from backend.config import load_config

    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")
    init_db(Database(load_config()["DATABASE_URL"]))
