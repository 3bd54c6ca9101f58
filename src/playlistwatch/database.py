"""
SQLite-backed key-value store for the registry snapshot.

The registry is the only writer. Two keys are used: the bulk snapshot and the
selected stream, stored separately so the selection survives if the bulk entry
is lost.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from . import config
from .exceptions import SnapshotStoreError

logger = logging.getLogger(config.APP_NAME + ".database")

SCHEMA_VERSION = 1

SCHEMA_SQL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_info (
    version INTEGER PRIMARY KEY,
    applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    description TEXT
);

-- Durable key-value entries
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

MEMORY_PATH = ":memory:"


class SnapshotDatabase:
    """
    Thread-local SQLite key-value store.

    Pass ``":memory:"`` as the path for a throwaway store (tests, --no-cache).
    """

    def __init__(self, db_path: Optional[Union[Path, str]] = None):
        """
        Open (and create if needed) the snapshot database.

        Args:
            db_path: SQLite file path. None uses the configured location.
        """
        if db_path is None:
            db_path = config.get_database_path()

        self._in_memory = str(db_path) == MEMORY_PATH
        self.db_path = db_path if self._in_memory else Path(db_path)
        self._local = threading.local()

        if not self._in_memory:
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise SnapshotStoreError(f"Cannot create database directory: {e}")

        self._initialize_database()
        logger.info(f"Snapshot database initialized at: {self.db_path}")

    @property
    def connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if not hasattr(self._local, "connection"):
            try:
                conn = sqlite3.connect(
                    str(self.db_path),
                    timeout=30.0,
                    check_same_thread=False,
                )
                conn.row_factory = sqlite3.Row
                if not self._in_memory:
                    conn.execute("PRAGMA journal_mode = WAL")
                    conn.execute("PRAGMA synchronous = NORMAL")
                self._local.connection = conn
            except sqlite3.Error as e:
                raise SnapshotStoreError(f"Failed to connect to database: {e}")

        return self._local.connection

    @contextmanager
    def transaction(self):
        """Context manager for database transactions."""
        conn = self.connection
        try:
            conn.execute("BEGIN")
            yield conn
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Transaction rolled back: {e}")
            raise

    def _initialize_database(self) -> None:
        try:
            self.connection.executescript(SCHEMA_SQL)
            with self.transaction() as conn:
                row = conn.execute("SELECT MAX(version) FROM schema_info").fetchone()
                current_version = row[0] if row[0] is not None else 0
                if current_version < SCHEMA_VERSION:
                    conn.execute(
                        "INSERT INTO schema_info (version, description) VALUES (?, ?)",
                        (SCHEMA_VERSION, f"Migration from v{current_version} to v{SCHEMA_VERSION}"),
                    )
        except sqlite3.Error as e:
            raise SnapshotStoreError(f"Failed to initialize database: {e}")

    # --- Key-value operations ---

    def get(self, key: str) -> Optional[str]:
        """Return the stored value for ``key`` or None."""
        try:
            row = self.connection.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as e:
            logger.error(f"Failed to read '{key}': {e}")
            return None
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        """Insert or replace ``key``."""
        try:
            with self.transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO kv_store (key, value, updated_at)
                    VALUES (?, ?, CURRENT_TIMESTAMP)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = CURRENT_TIMESTAMP
                    """,
                    (key, value),
                )
        except sqlite3.Error as e:
            raise SnapshotStoreError(f"Failed to write '{key}': {e}")

    def delete(self, key: str) -> bool:
        """Remove ``key``. Returns True if an entry was deleted."""
        try:
            with self.transaction() as conn:
                cursor = conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                return cursor.rowcount > 0
        except sqlite3.Error as e:
            raise SnapshotStoreError(f"Failed to delete '{key}': {e}")

    def keys(self) -> List[str]:
        rows = self.connection.execute("SELECT key FROM kv_store ORDER BY key").fetchall()
        return [row["key"] for row in rows]

    def get_database_info(self) -> Dict[str, Any]:
        """Database information for debugging."""
        return {
            "path": str(self.db_path),
            "schema_version": SCHEMA_VERSION,
            "keys": self.keys(),
        }

    def close(self) -> None:
        """Close database connection."""
        if hasattr(self._local, "connection"):
            self._local.connection.close()
            delattr(self._local, "connection")
