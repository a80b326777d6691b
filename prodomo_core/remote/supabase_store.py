# =============================================================================
# prodomo_core/remote/supabase_store.py
# Supabase-backed Remote Store
# =============================================================================

from __future__ import annotations
from typing import Any, Dict, List, Optional

import streamlit as st

from prodomo_core.logging import get_logger
from .base import RemoteResult, RemoteStore

logger = get_logger(__name__)


def create_supabase_client(url: str, key: str):
    """
    Create a Supabase client.

    Returns:
        Supabase client instance or None if creation fails
    """
    try:
        from supabase import create_client, Client

        client: Client = create_client(url, key)
        return client
    except Exception as e:
        logger.error(f"Failed to initialize Supabase client: {e}")
        return None


@st.cache_resource(ttl=3600)  # Refresh hourly to avoid stale connections
def get_cached_supabase_client(url: str, key: str):
    """Supabase client shared across Streamlit sessions."""
    return create_supabase_client(url, key)


class SupabaseStore(RemoteStore):
    """
    RemoteStore over the Supabase PostgREST API.

    Any exception raised by the client (network, auth, constraint
    violation) is returned as a failed RemoteResult.
    """

    def __init__(self, client):
        self.client = client

    @classmethod
    def from_credentials(cls, url: str, key: str, cached: bool = True) -> SupabaseStore:
        client = get_cached_supabase_client(url, key) if cached else create_supabase_client(url, key)
        return cls(client)

    def is_connected(self) -> bool:
        """Check if Supabase client is available."""
        return self.client is not None

    def _not_connected(self, table: str, operation: str) -> RemoteResult:
        return RemoteResult.failure("Supabase client not available", table=table, operation=operation)

    @staticmethod
    def _apply_filters(query, filters: Optional[Dict[str, Any]]):
        for col, val in (filters or {}).items():
            query = query.eq(col, val)
        return query

    def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        columns: str = "*",
        order: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> RemoteResult:
        if not self.is_connected():
            return self._not_connected(table, "select")

        try:
            query = self._apply_filters(self.client.table(table).select(columns), filters)
            if order:
                query = query.order(order, desc=not ascending)
            if limit:
                query = query.limit(limit)
            response = query.execute()
            return RemoteResult.success(response.data)
        except Exception as e:
            logger.warning(f"Error fetching data from {table}: {e}")
            return RemoteResult.failure(str(e), table=table, operation="select")

    def insert(self, table: str, rows: List[Dict[str, Any]]) -> RemoteResult:
        if not self.is_connected():
            return self._not_connected(table, "insert")

        try:
            response = self.client.table(table).insert(rows).execute()
            return RemoteResult.success(response.data)
        except Exception as e:
            logger.warning(f"Error inserting into {table}: {e}")
            return RemoteResult.failure(str(e), table=table, operation="insert")

    def update(self, table: str, patch: Dict[str, Any], filters: Dict[str, Any]) -> RemoteResult:
        if not self.is_connected():
            return self._not_connected(table, "update")

        try:
            query = self._apply_filters(self.client.table(table).update(patch), filters)
            response = query.execute()
            return RemoteResult.success(response.data)
        except Exception as e:
            logger.warning(f"Error updating {table}: {e}")
            return RemoteResult.failure(str(e), table=table, operation="update")

    def delete(self, table: str, filters: Dict[str, Any]) -> RemoteResult:
        if not self.is_connected():
            return self._not_connected(table, "delete")

        try:
            query = self._apply_filters(self.client.table(table).delete(), filters)
            response = query.execute()
            return RemoteResult.success(response.data)
        except Exception as e:
            logger.warning(f"Error deleting from {table}: {e}")
            return RemoteResult.failure(str(e), table=table, operation="delete")
