# =============================================================================
# prodomo_core/remote/base.py
# Remote Store contract
# =============================================================================
"""
Table-oriented remote store interface.

Every operation returns a RemoteResult instead of raising, so callers
branch on ``result.ok`` to choose between the remote and local paths.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from prodomo_core.errors import RemoteStoreError


@dataclass
class RemoteResult:
    """Outcome of one remote call: rows on success, an error otherwise."""
    data: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[RemoteStoreError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def first(self) -> Optional[Dict[str, Any]]:
        return self.data[0] if self.data else None

    @classmethod
    def success(cls, data: Optional[List[Dict[str, Any]]] = None) -> RemoteResult:
        return cls(data=list(data or []))

    @classmethod
    def failure(cls, message: str, table: Optional[str] = None, operation: Optional[str] = None) -> RemoteResult:
        return cls(error=RemoteStoreError(message, table=table, operation=operation))


class RemoteStore(ABC):
    """
    Abstract relational data service.

    Filters are equality matches on column values; ``order`` names one
    column to sort by.
    """

    @abstractmethod
    def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        columns: str = "*",
        order: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> RemoteResult:
        """Fetch rows matching filters."""

    @abstractmethod
    def insert(self, table: str, rows: List[Dict[str, Any]]) -> RemoteResult:
        """Insert rows; data holds the rows as stored (with generated ids)."""

    @abstractmethod
    def update(self, table: str, patch: Dict[str, Any], filters: Dict[str, Any]) -> RemoteResult:
        """Apply patch to rows matching filters."""

    @abstractmethod
    def delete(self, table: str, filters: Dict[str, Any]) -> RemoteResult:
        """Delete rows matching filters."""


class UnavailableRemoteStore(RemoteStore):
    """Stand-in used when no remote credentials are configured; every call fails."""

    def __init__(self, reason: str = "Remote store not configured"):
        self.reason = reason

    def select(self, table, filters=None, columns="*", order=None, ascending=True, limit=None):
        return RemoteResult.failure(self.reason, table=table, operation="select")

    def insert(self, table, rows):
        return RemoteResult.failure(self.reason, table=table, operation="insert")

    def update(self, table, patch, filters):
        return RemoteResult.failure(self.reason, table=table, operation="update")

    def delete(self, table, filters):
        return RemoteResult.failure(self.reason, table=table, operation="delete")
