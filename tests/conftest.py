# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import copy
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from prodomo_core.remote import RemoteResult, RemoteStore
from prodomo_core.services import DataAccessLayer
from prodomo_core.state import ErrorState
from prodomo_core.storage import LocalCache, MemoryKeyValueStore


# =============================================================================
# FAKE REMOTE STORE
# =============================================================================

class FakeRemoteStore(RemoteStore):
    """
    In-memory RemoteStore.

    ``online = False`` makes every call fail; ``fail_on`` holds operations
    ("select", "insert", ...) or (table, operation) pairs that fail while
    online. Every call is recorded in ``calls``.
    """

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.online = True
        self.fail_on = set()
        self.calls: List[tuple] = []
        self._counter = 0

    def _should_fail(self, table: str, operation: str) -> bool:
        return not self.online or operation in self.fail_on or (table, operation) in self.fail_on

    def _failure(self, table, operation):
        return RemoteResult.failure("simulated outage", table=table, operation=operation)

    @staticmethod
    def _matches(row, filters):
        return all(row.get(k) == v for k, v in (filters or {}).items())

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.setdefault(table, [])

    def select(self, table, filters=None, columns="*", order=None, ascending=True, limit=None):
        self.calls.append(("select", table, filters))
        if self._should_fail(table, "select"):
            return self._failure(table, "select")

        rows = [copy.deepcopy(r) for r in self.rows(table) if self._matches(r, filters)]
        if order:
            rows.sort(key=lambda r: (r.get(order) is None, r.get(order)), reverse=not ascending)
        if limit:
            rows = rows[:limit]
        if columns != "*":
            wanted = [c.strip() for c in columns.split(",")]
            rows = [{c: r.get(c) for c in wanted} for r in rows]
        return RemoteResult.success(rows)

    def insert(self, table, rows):
        self.calls.append(("insert", table, rows))
        if self._should_fail(table, "insert"):
            return self._failure(table, "insert")

        stored = []
        for row in rows:
            self._counter += 1
            row = copy.deepcopy(row)
            row.setdefault("id", f"remote-{self._counter}")
            row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
            self.rows(table).append(row)
            stored.append(copy.deepcopy(row))
        return RemoteResult.success(stored)

    def update(self, table, patch, filters):
        self.calls.append(("update", table, patch, filters))
        if self._should_fail(table, "update"):
            return self._failure(table, "update")

        updated = []
        for row in self.rows(table):
            if self._matches(row, filters):
                row.update(copy.deepcopy(patch))
                updated.append(copy.deepcopy(row))
        return RemoteResult.success(updated)

    def delete(self, table, filters):
        self.calls.append(("delete", table, filters))
        if self._should_fail(table, "delete"):
            return self._failure(table, "delete")

        kept = [r for r in self.rows(table) if not self._matches(r, filters)]
        removed = [r for r in self.rows(table) if self._matches(r, filters)]
        self.tables[table] = kept
        return RemoteResult.success(removed)

    def writes(self, table: Optional[str] = None) -> List[tuple]:
        return [c for c in self.calls if c[0] != "select" and (table is None or c[1] == table)]


# =============================================================================
# CORE FIXTURES
# =============================================================================

@pytest.fixture
def fake_remote():
    """Reachable, empty remote store"""
    return FakeRemoteStore()


@pytest.fixture
def offline_remote():
    """Remote store that fails every call"""
    remote = FakeRemoteStore()
    remote.online = False
    return remote


@pytest.fixture
def kv_store():
    return MemoryKeyValueStore()


@pytest.fixture
def cache(kv_store):
    """In-memory local cache with the default prefix"""
    return LocalCache(kv_store, prefix="prodomo")


@pytest.fixture
def error_state():
    return ErrorState()


@pytest.fixture
def dal(fake_remote, cache, error_state):
    """DataAccessLayer wired to the fake remote and in-memory cache"""
    return DataAccessLayer(fake_remote, cache, error_state)


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

def make_user_row(user_id: str, name: str, grade: str = "V4", total_downloads: int = 0) -> Dict[str, Any]:
    return {
        "id": user_id,
        "name": name,
        "email": f"{name.lower().replace(' ', '.')}@prodomo.local",
        "grade": grade,
        "join_date": "2024-01-01T00:00:00+00:00",
        "last_active": "2024-01-01T00:00:00+00:00",
        "total_downloads": total_downloads,
        "is_guest": False,
        "is_blocked": False,
        "blocked_until": None,
        "admin_notes": None,
        "created_at": "2024-01-01T00:00:00+00:00",
        "updated_at": "2024-01-01T00:00:00+00:00",
    }


@pytest.fixture
def sample_users():
    """One user per grade"""
    return [
        make_user_row("admin-1", "Admin User", "Admin"),
        make_user_row("u1", "V4 User", "V4", total_downloads=5),
        make_user_row("u2", "V5 User", "V5", total_downloads=12),
        make_user_row("support-1", "Support User", "Support", total_downloads=3),
    ]


@pytest.fixture
def remote_with_users(fake_remote, sample_users):
    fake_remote.tables["users"] = copy.deepcopy(sample_users)
    return fake_remote


@pytest.fixture
def cache_with_users(cache, sample_users):
    cache.write("users", copy.deepcopy(sample_users))
    return cache


# =============================================================================
# MOCK FIXTURES
# =============================================================================

@pytest.fixture
def mock_streamlit():
    """Mock Streamlit for testing"""
    import sys

    # Create mock streamlit module
    mock_st = MagicMock()
    mock_st.session_state = {}
    mock_st.cache_data = lambda f: f
    mock_st.cache_resource = lambda f: f

    # Store original and replace
    original_st = sys.modules.get('streamlit')
    sys.modules['streamlit'] = mock_st

    yield mock_st

    # Restore original
    if original_st:
        sys.modules['streamlit'] = original_st
    else:
        del sys.modules['streamlit']


@pytest.fixture
def mock_supabase():
    """Mock Supabase client"""
    mock_client = MagicMock()
    mock_client.table.return_value.select.return_value.execute.return_value.data = []
    mock_client.table.return_value.insert.return_value.execute.return_value = MagicMock()
    return mock_client
