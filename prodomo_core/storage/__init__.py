# =============================================================================
# prodomo_core/storage/__init__.py
# Local fallback storage
# =============================================================================

from .key_value import KeyValueStore, MemoryKeyValueStore, SqliteKeyValueStore
from .local_cache import LocalCache, SCHEMA_VERSION

__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SqliteKeyValueStore",
    "LocalCache",
    "SCHEMA_VERSION",
]
