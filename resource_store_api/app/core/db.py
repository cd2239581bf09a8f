"""
SQLite database integration and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``), a cursor context manager that commits on success
(``get_cursor``) and ``init_db`` which applies migrations when a store
is opened.  Both the relational and the document store live in the same
database file; each owns one table.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator

SQLITE_URL_PREFIX = "sqlite:///"

MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: relational resource table
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS resources (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            reference TEXT NOT NULL,
            status INTEGER NOT NULL DEFAULT 0
        );
        """,
    ),
    # Migration 2: document collection.  ``seq`` only records insertion
    # order; documents are addressed by ``key``.
    (
        2,
        """
        CREATE TABLE IF NOT EXISTS documents (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            key TEXT NOT NULL UNIQUE,
            body TEXT NOT NULL
        );
        """,
    ),
]


def get_database_path(database_url: str) -> str:
    """Turn ``DATABASE_URL`` into a filesystem path for ``sqlite3``.

    ``sqlite:///relative.db`` and ``sqlite:////abs/path.db`` URLs are
    accepted as well as plain paths.  Relative paths resolve against the
    current working directory.
    """
    path = database_url
    if path.startswith(SQLITE_URL_PREFIX):
        path = path[len(SQLITE_URL_PREFIX):]
    return os.path.abspath(path)


def get_connection(database_url: str) -> sqlite3.Connection:
    """Create and return a new SQLite connection with name-addressable rows."""
    conn = sqlite3.connect(get_database_path(database_url))
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_cursor(database_url: str) -> Iterator[sqlite3.Cursor]:
    """Yield a cursor, commit on success, roll back on error, always close."""
    conn = get_connection(database_url)
    try:
        yield conn.cursor()
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(database_url: str) -> int:
    """Initialise the database and apply pending migrations.

    Returns the schema version after migrating.  Errors propagate to the
    caller; at startup they are fatal.
    """
    with get_cursor(database_url) as cursor:
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) AS version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                current_version = version
    return current_version
