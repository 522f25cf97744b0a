# horizon/storage/sqlite_kv.py
"""SQLite-backed key-value storage."""

import asyncio
import json
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from ..contracts.storage import IKeyValueStore
from ..core.errors import PersistenceError


logger = logging.getLogger(__name__)


class SQLiteKeyValueStore(IKeyValueStore):
    """
    Key-value store on a single SQLite table.

    Values are JSON-encoded text; set() replaces whole values. Statements
    run in a worker thread behind one connection and one lock, so callers
    on the event loop suspend while the disk is busy.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.database_path = Path(self.config.get("database", "data/horizon.db"))

        self.conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()
        self._initialized = False

    def _connect(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self.conn is None:
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
            self.conn = sqlite3.connect(str(self.database_path), check_same_thread=False)
            self.conn.row_factory = sqlite3.Row

        if not self._initialized:
            self._initialize(self.conn)

        return self.conn

    def _initialize(self, conn: sqlite3.Connection) -> None:
        """Create database schema."""
        conn.execute("""
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
            )
        """)
        conn.commit()
        self._initialized = True
        logger.debug("Key-value table ready at %s", self.database_path)

    def _run(self, operation, *args):
        with self._lock:
            try:
                return operation(self._connect(), *args)
            except sqlite3.Error as e:
                raise PersistenceError(f"SQLite operation failed: {e}") from e

    async def get(self, keys: Iterable[str]) -> Dict[str, Any]:
        return await asyncio.to_thread(self._run, self._get, list(keys))

    async def set(self, items: Dict[str, Any]) -> None:
        # Encode before leaving the loop so later mutation of items cannot leak in.
        encoded = [(key, json.dumps(value)) for key, value in items.items()]
        await asyncio.to_thread(self._run, self._set, encoded)

    async def get_all(self) -> Dict[str, Any]:
        return await asyncio.to_thread(self._run, self._get_all)

    async def clear(self) -> None:
        await asyncio.to_thread(self._run, self._clear)

    @staticmethod
    def _get(conn: sqlite3.Connection, keys: list) -> Dict[str, Any]:
        if not keys:
            return {}
        placeholders = ", ".join("?" for _ in keys)
        cursor = conn.execute(
            f"SELECT key, value FROM kv WHERE key IN ({placeholders})",
            keys,
        )
        return {row["key"]: json.loads(row["value"]) for row in cursor.fetchall()}

    @staticmethod
    def _set(conn: sqlite3.Connection, encoded: list) -> None:
        conn.executemany("""
            INSERT INTO kv (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP
        """, encoded)
        conn.commit()

    @staticmethod
    def _get_all(conn: sqlite3.Connection) -> Dict[str, Any]:
        cursor = conn.execute("SELECT key, value FROM kv ORDER BY key")
        return {row["key"]: json.loads(row["value"]) for row in cursor.fetchall()}

    @staticmethod
    def _clear(conn: sqlite3.Connection) -> None:
        conn.execute("DELETE FROM kv")
        conn.commit()

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self.conn:
                self.conn.close()
                self.conn = None
                self._initialized = False
