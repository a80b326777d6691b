# =============================================================================
# prodomo_core/storage/local_cache.py
# Namespaced JSON cache used as the fallback store
# =============================================================================
"""
LocalCache - durable, namespaced JSON storage on top of a KeyValueStore.

Values are written as a versioned envelope:

    {"schema_version": 1, "data": <value>}

A bare JSON value (what the browser build of the dashboard left in
localStorage) is read as schema version 0 and migrated forward. Missing,
malformed or unreadable entries read as absent; they are never surfaced
as errors.

Every collection is read and written whole. ``mutate`` performs the
read-modify-write of one key under a per-key lock so concurrent writers
in one process cannot lose each other's updates.
"""

from __future__ import annotations
import json
import threading
from typing import Any, Callable, Dict, List, Optional

from prodomo_core.errors import LocalCacheError
from prodomo_core.logging import get_logger
from .key_value import KeyValueStore, MemoryKeyValueStore

logger = get_logger(__name__)

SCHEMA_VERSION = 1


def _from_v0(data: Any) -> Any:
    # v0 entries are bare values; the payload shape itself did not change
    return data


# Maps a stored schema version to the step that lifts it one version up
MIGRATIONS: Dict[int, Callable[[Any], Any]] = {
    0: _from_v0,
}


class LocalCache:
    """
    JSON cache with ``<prefix>_<name>`` keys.

    Usage:
        cache = LocalCache(SqliteKeyValueStore(path), prefix="prodomo")
        users = cache.read("users", default=[])
        cache.mutate("users", lambda rows: rows + [new_user], default=[])
    """

    def __init__(self, store: Optional[KeyValueStore] = None, prefix: str = "prodomo"):
        self.store = store if store is not None else MemoryKeyValueStore()
        self.prefix = prefix
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def key(self, name: str) -> str:
        """Full storage key for a collection name."""
        return f"{self.prefix}_{name}"

    def _lock_for(self, key: str) -> threading.RLock:
        with self._locks_guard:
            if key not in self._locks:
                self._locks[key] = threading.RLock()
            return self._locks[key]

    # =========================================================================
    # ENVELOPE
    # =========================================================================

    @staticmethod
    def _unwrap(raw: str, key: str) -> Any:
        payload = json.loads(raw)
        if isinstance(payload, dict) and set(payload) == {"schema_version", "data"}:
            version = payload["schema_version"]
            data = payload["data"]
        else:
            version = 0
            data = payload

        if not isinstance(version, int) or version > SCHEMA_VERSION:
            raise ValueError(f"unsupported schema version {version!r} for {key}")

        while version < SCHEMA_VERSION:
            data = MIGRATIONS[version](data)
            version += 1
        return data

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    def read(self, name: str, default: Any = None) -> Any:
        """
        Read and deserialize a collection.

        Returns:
            The stored value, or ``default`` if the key is missing, malformed
            or the backend cannot be read.
        """
        key = self.key(name)
        try:
            raw = self.store.get(key)
        except LocalCacheError as e:
            logger.error(f"Local cache read failed for {key}: {e}")
            return default

        if raw is None:
            return default

        try:
            return self._unwrap(raw, key)
        except (ValueError, TypeError, KeyError) as e:
            logger.warning(f"Ignoring malformed local cache entry {key}: {e}")
            return default

    def write(self, name: str, value: Any) -> None:
        """
        Serialize value and overwrite the key.

        Raises:
            LocalCacheError: If the value cannot be serialized or stored
        """
        key = self.key(name)
        try:
            raw = json.dumps({"schema_version": SCHEMA_VERSION, "data": value}, default=str)
        except (TypeError, ValueError) as e:
            raise LocalCacheError(f"Value for {key} is not JSON-serializable: {e}", key=key) from e

        with self._lock_for(key):
            self.store.set(key, raw)

    def mutate(self, name: str, fn: Callable[[Any], Any], default: Any = None) -> Any:
        """
        Atomically read, transform and write one key.

        Args:
            name: Collection name
            fn: Receives the current value (or default) and returns the new one
            default: Value passed to fn when the key is absent

        Returns:
            The value that was written
        """
        key = self.key(name)
        with self._lock_for(key):
            current = self.read(name, default)
            updated = fn(current)
            self.write(name, updated)
            return updated

    def delete(self, name: str) -> None:
        key = self.key(name)
        with self._lock_for(key):
            self.store.delete(key)

    def exists(self, name: str) -> bool:
        try:
            return self.store.get(self.key(name)) is not None
        except LocalCacheError:
            return False

    def names(self) -> List[str]:
        """Collection names stored under this cache's prefix."""
        start = len(self.prefix) + 1
        return [k[start:] for k in self.store.keys(f"{self.prefix}_")]
