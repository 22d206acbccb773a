"""SQLite database helpers shared by the repositories."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
import re
import sqlite3
from typing import Any

DEFAULT_DB_PATH = "./var/cms.db"

_REPOSITORY_ID = re.compile(r"^[a-z0-9_]{1,16}$")


def resolve_db_path(config: Mapping[str, Any] | None = None) -> Path:
    """Return the configured database path."""

    if config is None:
        from config import ConfigController

        config = ConfigController.get_instance().get_config()
    storage_config = config.get("storage") or {}
    return Path(storage_config.get("db_path", DEFAULT_DB_PATH)).expanduser()


def connect(db_path: Path) -> sqlite3.Connection:
    """Open the database, creating its directory if needed."""

    db_path.parent.mkdir(parents=True, exist_ok=True)
    return sqlite3.connect(db_path, check_same_thread=False)


def list_table_names(conn: sqlite3.Connection) -> list[str]:
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name")
    return [row[0] for row in cursor.fetchall()]


def content_repository_table(repository_id: str) -> str:
    """Return the event table name of a content repository."""

    if not _REPOSITORY_ID.match(repository_id):
        raise ValueError(f'Invalid content repository id "{repository_id}"')
    return f"cr_{repository_id}_events"


def setup_content_repository(conn: sqlite3.Connection, repository_id: str) -> str:
    """Create the event table of a content repository if it is missing."""

    table = content_repository_table(repository_id)
    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS {table} (
            sequence_number INTEGER PRIMARY KEY AUTOINCREMENT,
            stream TEXT NOT NULL,
            type TEXT NOT NULL,
            payload JSON,
            recorded_at DATETIME DEFAULT CURRENT_TIMESTAMP
        )
        """
    )
    conn.commit()
    return table
