"""SQLite database helpers for the note, topic and link schema."""

from __future__ import annotations

from pathlib import Path
import sqlite3
from typing import Iterable

from .config import DEFAULT_DB_PATH

DDL_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS topics (
        user_id TEXT NOT NULL,
        topic_id TEXT NOT NULL,
        name TEXT NOT NULL,
        created TEXT NOT NULL,
        PRIMARY KEY (user_id, topic_id),
        UNIQUE (user_id, name)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS notes (
        user_id TEXT NOT NULL,
        note_id TEXT NOT NULL,
        title TEXT NOT NULL,
        blocks TEXT NOT NULL DEFAULT '[]',
        created TEXT NOT NULL,
        updated TEXT NOT NULL,
        PRIMARY KEY (user_id, note_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_notes_updated ON notes(user_id, updated DESC)",
    """
    CREATE TABLE IF NOT EXISTS note_topics (
        user_id TEXT NOT NULL,
        note_id TEXT NOT NULL,
        topic_id TEXT NOT NULL,
        position INTEGER NOT NULL,
        PRIMARY KEY (user_id, note_id, topic_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_note_topics_topic ON note_topics(user_id, topic_id)",
    """
    CREATE TABLE IF NOT EXISTS note_prerequisites (
        user_id TEXT NOT NULL,
        note_id TEXT NOT NULL,
        prereq_id TEXT NOT NULL,
        position INTEGER NOT NULL,
        PRIMARY KEY (user_id, note_id, prereq_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_prereqs_prereq ON note_prerequisites(user_id, prereq_id)",
    """
    CREATE TABLE IF NOT EXISTS links (
        user_id TEXT NOT NULL,
        link_id TEXT NOT NULL,
        source_id TEXT NOT NULL,
        target_id TEXT NOT NULL,
        created TEXT NOT NULL,
        PRIMARY KEY (user_id, link_id),
        UNIQUE (user_id, source_id, target_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_links_source ON links(user_id, source_id)",
    "CREATE INDEX IF NOT EXISTS idx_links_target ON links(user_id, target_id)",
)


class DatabaseService:
    """Manage SQLite connections and schema initialization."""

    def __init__(self, db_path: str | Path | None = None):
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH

    def _ensure_directory(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def connect(self) -> sqlite3.Connection:
        """Return a sqlite3 connection with the proper data directory created."""
        self._ensure_directory()
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self, statements: Iterable[str] | None = None) -> Path:
        """Create all schema artifacts required by the store."""
        conn = self.connect()
        try:
            with conn:  # Transactional apply of DDL
                for statement in statements or DDL_STATEMENTS:
                    conn.execute(statement)
        finally:
            conn.close()
        return self.db_path


def init_database(db_path: str | Path | None = None) -> Path:
    """Convenience wrapper used by the startup hook and tests."""
    return DatabaseService(db_path).initialize()


__all__ = ["DatabaseService", "init_database", "DEFAULT_DB_PATH"]
