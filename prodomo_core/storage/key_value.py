# =============================================================================
# prodomo_core/storage/key_value.py
# Durable string key/value backends for the local cache
# =============================================================================
"""
Key/value backends behind LocalCache.

- MemoryKeyValueStore: dict-backed, used by tests and ephemeral sessions
- SqliteKeyValueStore: single-file SQLite store that survives restarts

Both store raw strings; JSON handling lives in LocalCache.
"""

from __future__ import annotations
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from prodomo_core.errors import LocalCacheError
from prodomo_core.logging import get_logger

logger = get_logger(__name__)


class KeyValueStore(ABC):
    """Synchronous string key/value storage scoped to one device."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored string or None when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key if present."""

    @abstractmethod
    def keys(self, prefix: str = "") -> List[str]:
        """List stored keys starting with prefix."""


class MemoryKeyValueStore(KeyValueStore):
    """In-process store; contents vanish with the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self._data if k.startswith(prefix))


class SqliteKeyValueStore(KeyValueStore):
    """
    SQLite-backed store, one row per key.

    Connections are thread-local; every write commits immediately so a
    crash never leaves a half-written collection behind.
    """

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS kv_store (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._local = threading.local()
        self._initialize()

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if getattr(self._local, "connection", None) is None:
            self._local.connection = sqlite3.connect(str(self.db_path), check_same_thread=False)
        return self._local.connection

    @contextmanager
    def transaction(self):
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise LocalCacheError(f"Local cache write failed: {e}") from e

    def _initialize(self) -> None:
        with self.transaction() as conn:
            conn.execute(self.SCHEMA)
        logger.info(f"Local cache database initialized at: {self.db_path}")

    def get(self, key: str) -> Optional[str]:
        try:
            row = self._get_connection().execute(
                "SELECT value FROM kv_store WHERE key = ?", [key]
            ).fetchone()
        except sqlite3.Error as e:
            raise LocalCacheError(f"Local cache read failed: {e}", key=key) from e
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                """,
                [key, value, datetime.now().isoformat()],
            )

    def delete(self, key: str) -> None:
        with self.transaction() as conn:
            conn.execute("DELETE FROM kv_store WHERE key = ?", [key])

    def keys(self, prefix: str = "") -> List[str]:
        rows = self._get_connection().execute(
            "SELECT key FROM kv_store WHERE key LIKE ? ESCAPE '\\' ORDER BY key",
            [prefix.replace("%", "\\%").replace("_", "\\_") + "%"],
        ).fetchall()
        return [row[0] for row in rows]

    def close(self) -> None:
        """Close this thread's connection."""
        if getattr(self._local, "connection", None) is not None:
            self._local.connection.close()
            self._local.connection = None
