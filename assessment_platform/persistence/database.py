"""Platform-owned SQLite database primitives.

The database file is the device-scoped store: it lives in the user's home
directory (or wherever ``SRI_ASSESSMENT_DB_PATH`` points) and is never
shared across devices.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Optional

from assessment_platform.config import get_db_path

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

MEMORY_DB = ":memory:"


def get_connection(db_path: Optional[Path | str] = None, *,
                   check_same_thread: bool = True) -> sqlite3.Connection:
    """Open (or create) the device database and ensure the schema exists.

    Returns a ``sqlite3.Connection`` with WAL mode enabled.
    The caller is responsible for closing the connection.
    """
    target = str(db_path) if db_path is not None else str(get_db_path())
    if target != MEMORY_DB:
        Path(target).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(target, check_same_thread=check_same_thread)
    conn.row_factory = sqlite3.Row
    if target != MEMORY_DB:
        conn.execute("PRAGMA journal_mode=WAL")
    init_db(conn)
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Create tables if they don't exist and record the schema version."""
    conn.executescript(_SCHEMA_SQL)

    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    current = row[0] if row[0] is not None else 0

    if current < SCHEMA_VERSION:
        logger.info("Initialising assessment store schema v%d", SCHEMA_VERSION)
        conn.execute(
            "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
            (SCHEMA_VERSION,),
        )
        conn.commit()


_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS progress (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS assessment_session (
    id TEXT PRIMARY KEY,
    type TEXT NOT NULL,
    demographics TEXT DEFAULT '{}',
    responses TEXT DEFAULT '[]',
    start_time TEXT NOT NULL,
    end_time TEXT,
    completed INTEGER DEFAULT 0,
    results TEXT,
    updated_at TEXT NOT NULL
);
"""


__all__ = ["SCHEMA_VERSION", "MEMORY_DB", "get_connection", "init_db"]
