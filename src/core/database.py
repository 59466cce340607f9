"""
SQLite schema and connection helpers for the local event store and request log.
"""

import sqlite3
from pathlib import Path

from core.config import DB_PATH

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS event_blobs (
        owner_id TEXT PRIMARY KEY,
        payload TEXT NOT NULL,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS api_requests (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        request_id TEXT UNIQUE NOT NULL,
        timestamp TEXT NOT NULL,
        endpoint TEXT NOT NULL,
        method TEXT NOT NULL,
        client_ip TEXT,
        owner_id TEXT,
        date_key TEXT,
        event_id TEXT,
        status_code INTEGER NOT NULL,
        error_code TEXT,
        error_message TEXT,
        processing_time_ms INTEGER NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_api_requests_timestamp ON api_requests(timestamp)",
    "CREATE INDEX IF NOT EXISTS idx_api_requests_owner ON api_requests(owner_id)",
]


def get_connection(db_path: Path | str = DB_PATH) -> sqlite3.Connection:
    """Get a database connection."""
    return sqlite3.connect(db_path)


def init_schema(db_path: Path | str = DB_PATH) -> None:
    """Create the database file and tables if they don't exist."""
    if str(db_path) != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = get_connection(db_path)
    try:
        cursor = conn.cursor()
        for statement in SCHEMA:
            cursor.execute(statement)
        conn.commit()
    finally:
        conn.close()


def read_blob(conn: sqlite3.Connection, owner_id: str) -> str | None:
    """Return the serialized events payload for an owner, if any."""
    cursor = conn.cursor()
    cursor.execute("SELECT payload FROM event_blobs WHERE owner_id = ?", (owner_id,))
    row = cursor.fetchone()
    return row[0] if row else None


def write_blob(conn: sqlite3.Connection, owner_id: str, payload: str) -> None:
    """Replace the serialized events payload for an owner."""
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO event_blobs (owner_id, payload, updated_at)
        VALUES (?, ?, CURRENT_TIMESTAMP)
        ON CONFLICT(owner_id) DO UPDATE SET
            payload = excluded.payload,
            updated_at = excluded.updated_at
        """,
        (owner_id, payload),
    )
    conn.commit()
