"""Schema versioning for note stores.

The version lives in SQLite's ``PRAGMA user_version``. ``MIGRATIONS`` maps a
source version to the single step that moves the store to the next version;
``migrate`` replays the steps in order until ``LATEST_VERSION`` is reached.
"""
from __future__ import annotations
from typing import Callable

from sqlalchemy import Connection, Engine, text
from sqlalchemy.exc import SQLAlchemyError

from .errors import SchemaTooNewError, StorageError

SCHEMA_V1 = [
    """
    CREATE TABLE IF NOT EXISTS notes (
        id TEXT PRIMARY KEY NOT NULL,
        content TEXT NOT NULL,
        tags TEXT NOT NULL,
        date TEXT,
        created_at INTEGER NOT NULL,
        updated_at INTEGER NOT NULL,
        deleted_at INTEGER
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_updated_at ON notes(updated_at)",
    "CREATE INDEX IF NOT EXISTS idx_deleted_at ON notes(deleted_at)",
    "CREATE INDEX IF NOT EXISTS idx_date ON notes(date)",
    """
    CREATE TABLE IF NOT EXISTS sync_state (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL
    )
    """,
]

SUBJECT_DATE_V2 = [
    "ALTER TABLE notes RENAME COLUMN date TO subject_date",
    "DROP INDEX IF EXISTS idx_date",
    "CREATE INDEX IF NOT EXISTS idx_subject_date ON notes(subject_date)",
    "CREATE INDEX IF NOT EXISTS idx_created_at ON notes(created_at)",
]


def _run(conn: Connection, statements: list[str]) -> None:
    for stmt in statements:
        conn.execute(text(stmt))


def _initial_schema(conn: Connection) -> None:
    _run(conn, SCHEMA_V1)


def _rename_subject_date(conn: Connection) -> None:
    _run(conn, SUBJECT_DATE_V2)


# source version -> step to source version + 1
MIGRATIONS: dict[int, Callable[[Connection], None]] = {
    0: _initial_schema,
    1: _rename_subject_date,
}
LATEST_VERSION = len(MIGRATIONS)


def get_schema_version(conn: Connection) -> int:
    return int(conn.exec_driver_sql("PRAGMA user_version").scalar() or 0)


def set_schema_version(conn: Connection, version: int) -> None:
    # PRAGMA does not take bound parameters
    conn.exec_driver_sql(f"PRAGMA user_version = {int(version)}")


def migrate(engine: Engine) -> int:
    """Bring the store behind ``engine`` up to ``LATEST_VERSION``.

    Returns the final version. Raises ``SchemaTooNewError`` when the store was
    written by a newer build, and ``StorageError`` when a step fails.
    """
    try:
        with engine.begin() as conn:
            version = get_schema_version(conn)
            if version > LATEST_VERSION:
                raise SchemaTooNewError(version, LATEST_VERSION)
            while version < LATEST_VERSION:
                MIGRATIONS[version](conn)
                version += 1
                set_schema_version(conn, version)
            return version
    except SQLAlchemyError as e:
        raise StorageError("migrate schema", e) from e
