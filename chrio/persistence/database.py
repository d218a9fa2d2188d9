"""SQLite database layer for client and session storage.

Opens the SQLite database and creates the schema. Uses aiosqlite for
async access, with WAL mode for file databases and foreign keys enforced
so a session can never outlive or precede its client.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

import aiosqlite

from chrio.errors import StorageUnavailable

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"

# SQL schema for the chrio database
_SCHEMA = """
CREATE TABLE IF NOT EXISTS clients (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    firstname         TEXT NOT NULL,
    lastname          TEXT NOT NULL,
    dob               TEXT NOT NULL,
    sex               TEXT NOT NULL CHECK (sex IN ('M', 'F', 'O')),
    registration_date TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS sessions (
    id                 INTEGER PRIMARY KEY AUTOINCREMENT,
    client_id          INTEGER NOT NULL REFERENCES clients(id) ON DELETE CASCADE,
    datetime           TEXT NOT NULL,
    session_number     INTEGER NOT NULL,
    height             REAL,
    weight             REAL,
    anterior           TEXT,
    posterior          TEXT,
    right_lateral      TEXT,
    left_lateral       TEXT,
    notes              TEXT,
    anterior_crop      TEXT,
    posterior_crop     TEXT,
    right_lateral_crop TEXT,
    left_lateral_crop  TEXT,
    measurements_json  TEXT NOT NULL DEFAULT '{}',
    UNIQUE (client_id, session_number)
);

CREATE TABLE IF NOT EXISTS todos (
    id        INTEGER PRIMARY KEY AUTOINCREMENT,
    title     TEXT NOT NULL DEFAULT '',
    completed INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_clients_registered ON clients(registration_date);
CREATE INDEX IF NOT EXISTS idx_sessions_client ON sessions(client_id, datetime);
"""


async def init_db(db_path: str) -> aiosqlite.Connection:
    """Open the database and create tables if needed.

    Safe to call repeatedly on the same file: every statement is
    ``IF NOT EXISTS``.

    Args:
        db_path: Path to the SQLite database file. Supports ~ expansion
            and ``":memory:"``.

    Returns:
        An open aiosqlite connection with ``aiosqlite.Row`` rows.

    Raises:
        StorageUnavailable: If the file cannot be opened or the schema
            cannot be applied.
    """
    if db_path == MEMORY_DB:
        target = MEMORY_DB
    else:
        resolved = Path(db_path).expanduser()
        try:
            resolved.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailable(f"Cannot create database directory: {e}") from e
        target = str(resolved)

    try:
        db = await aiosqlite.connect(target)
    except (OSError, sqlite3.Error) as e:
        raise StorageUnavailable(f"Cannot open database {target}: {e}") from e

    try:
        if target != MEMORY_DB:
            await db.execute("PRAGMA journal_mode=WAL")
        await db.execute("PRAGMA foreign_keys=ON")
        await db.executescript(_SCHEMA)
        await db.commit()
    except sqlite3.Error as e:
        await db.close()
        raise StorageUnavailable(f"Cannot initialize database {target}: {e}") from e

    db.row_factory = aiosqlite.Row
    logger.info("Chrio database initialized at %s", target)
    return db


async def close_db(db: aiosqlite.Connection) -> None:
    """Close the database connection."""
    await db.close()


async def list_tables(db: aiosqlite.Connection) -> list[str]:
    """Return the user table names, sorted."""
    async with db.execute(
        "SELECT name FROM sqlite_master"
        " WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
    ) as cursor:
        return [row[0] for row in await cursor.fetchall()]
