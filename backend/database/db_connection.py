"""
PostgreSQL connection helper.
Provides a Database object that hands out psycopg2 connections.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

import psycopg2
from psycopg2.extras import DictCursor

from backend.errors import StorageError


class Database:
    """
    Connection factory bound to one DATABASE_URL.

    Built once at startup and shared by every store. Each transaction
    opens a fresh connection, so concurrent requests never share one.

    Usage:
        with db.transaction() as conn:
            with conn.cursor() as cur:
                cur.execute(...)
    """

    def __init__(self, database_url: str) -> None:
        self.database_url = database_url

    def connect(self):
        """
        Returns a new psycopg2 connection with dictionary-based row access.

        Returns:
            psycopg2.extensions.connection: A connection object with DictCursor factory.

        Raises:
            StorageError: If the connection cannot be opened.
        """
        try:
            conn = psycopg2.connect(self.database_url)
        except psycopg2.Error as e:
            logging.error(f"Error connecting to database: {e}")
            raise StorageError("Could not connect to the database") from e

        # Rows come back as dicts, e.g. {"id": 1, "email": "..."}
        conn.cursor_factory = DictCursor
        return conn

    @contextmanager
    def transaction(self) -> Iterator:
        """
        Open a connection, commit on success, roll back on error, always close.
        """
        conn = self.connect()
        try:
            with conn:
                yield conn
        finally:
            conn.close()
