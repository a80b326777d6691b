# =============================================================================
# prodomo_core/repositories/base.py
# Remote-first repository with local cache fallback
# =============================================================================
"""
BaseRepository - the remote-first / local-fallback contract shared by
every entity.

Reads:
    remote select -> on error (or, for collections that must never read
    empty, on zero rows) -> local cache -> [] when the key is absent.
    Reads never raise.

Writes (create / update / delete):
    remote call -> on success return it and leave the local cache alone
    -> on error splice the change into the cached collection by id.
    The outcome is an OperationResult whose ``source`` tells which store
    accepted the write; failures also set the shared error message.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Generic, List, Optional, Type, TypeVar, Union

from prodomo_core.errors import LocalCacheError, ReferentialIntegrityError, handle_error
from prodomo_core.logging import get_logger
from prodomo_core.models import Record, new_id, utc_now_iso
from prodomo_core.remote import RemoteStore
from prodomo_core.state import ErrorState
from prodomo_core.storage import LocalCache

if TYPE_CHECKING:
    from prodomo_core.services.consistency import ConsistencyMaintainer

E = TypeVar("E", bound=Record)


class Source(Enum):
    """Which store served or accepted an operation."""
    REMOTE = "remote"
    LOCAL = "local"


@dataclass
class OperationResult:
    """
    Result of a repository write.

    Truthiness is the success flag, so UI code can keep writing
    ``if repo.update_user(...):``.
    """
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    source: Optional[Source] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(
        cls,
        data: Any = None,
        source: Optional[Source] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> OperationResult:
        return cls(success=True, data=data, source=source, metadata=metadata or {})

    @classmethod
    def fail(cls, error: str, metadata: Optional[Dict[str, Any]] = None) -> OperationResult:
        return cls(success=False, error=error, metadata=metadata or {})


class _RecordMissing(Exception):
    """Aborts a cache mutation when the target id is not in the collection."""


def to_payload(data: Union[Record, Dict[str, Any]]) -> Dict[str, Any]:
    """Plain JSON-shaped dict from a record or a partial dict."""
    raw = data.to_dict() if isinstance(data, Record) else dict(data)
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in raw.items()}


class BaseRepository(Generic[E]):
    """
    Remote-first CRUD for one entity type.

    Subclasses set:
        TABLE: remote table name
        CACHE_NAME: local cache collection name (defaults to TABLE)
        RECORD: entity dataclass
        LABEL: noun used in user-facing error messages
        ORDER_BY / ASCENDING: list ordering
        EMPTY_IS_MISS: treat zero remote rows as a miss and read the cache
    """

    TABLE: str = ""
    CACHE_NAME: Optional[str] = None
    RECORD: Type[E] = Record
    LABEL: str = "record"
    ORDER_BY: str = "created_at"
    ASCENDING: bool = False
    EMPTY_IS_MISS: bool = False

    # Server-generated columns that must not be sent as null
    GENERATED_COLUMNS = ("id", "created_at", "updated_at")

    def __init__(
        self,
        remote: RemoteStore,
        cache: LocalCache,
        error_state: Optional[ErrorState] = None,
    ):
        self.remote = remote
        self.cache = cache
        self.error_state = error_state if error_state is not None else ErrorState()
        self.logger = get_logger(self.__class__.__name__)
        self.last_source: Optional[Source] = None

    @property
    def cache_name(self) -> str:
        return self.CACHE_NAME or self.TABLE

    @property
    def _has_updated_at(self) -> bool:
        return "updated_at" in getattr(self.RECORD, "__dataclass_fields__", {})

    # =========================================================================
    # CONVERSION
    # =========================================================================

    def _to_record(self, row: Dict[str, Any]) -> Optional[E]:
        try:
            return self.RECORD.from_dict(row)
        except (TypeError, ValueError) as e:
            self.logger.warning(f"Skipping malformed {self.LABEL} row {row.get('id')}: {e}")
            return None

    def _to_records(self, rows: List[Dict[str, Any]]) -> List[E]:
        records = (self._to_record(row) for row in rows if isinstance(row, dict))
        return [r for r in records if r is not None]

    def _sort_rows(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        key = self.ORDER_BY
        present = [r for r in rows if r.get(key) is not None]
        missing = [r for r in rows if r.get(key) is None]
        present.sort(key=lambda r: r[key], reverse=not self.ASCENDING)
        return present + missing

    # =========================================================================
    # LOCAL CACHE PRIMITIVES
    # =========================================================================

    def read_local(self) -> List[Dict[str, Any]]:
        """The cached collection, or [] when absent or not a list."""
        rows = self.cache.read(self.cache_name, default=[])
        return rows if isinstance(rows, list) else []

    def _append_local(self, row: Dict[str, Any]) -> None:
        self.cache.mutate(self.cache_name, lambda rows: list(rows or []) + [row], default=[])

    def _patch_local(self, record_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        """Merge patch into the cached row with record_id and return the merged row."""
        merged: Dict[str, Any] = {}

        def apply(rows):
            if not isinstance(rows, list):
                raise _RecordMissing(record_id)
            for index, row in enumerate(rows):
                if isinstance(row, dict) and row.get("id") == record_id:
                    merged.update({**row, **patch})
                    rows[index] = dict(merged)
                    return rows
            raise _RecordMissing(record_id)

        if not self.cache.exists(self.cache_name):
            raise _RecordMissing(record_id)
        self.cache.mutate(self.cache_name, apply, default=None)
        return merged

    def _remove_local(self, record_id: str) -> None:
        if not self.cache.exists(self.cache_name):
            raise _RecordMissing(record_id)
        self.cache.mutate(
            self.cache_name,
            lambda rows: [r for r in (rows or []) if not (isinstance(r, dict) and r.get("id") == record_id)],
            default=[],
        )

    # =========================================================================
    # READS
    # =========================================================================

    def fetch_rows(
        self,
        filters: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Remote-first read of raw rows.

        Args:
            filters: Equality filters on columns
            limit: Maximum number of rows

        Returns:
            Rows from the remote store, or from the local cache on a miss
        """
        filters = to_payload(filters or {})
        result = self.remote.select(
            self.TABLE,
            filters=filters or None,
            order=self.ORDER_BY,
            ascending=self.ASCENDING,
            limit=limit,
        )

        if result.ok and (result.data or not self.EMPTY_IS_MISS):
            self.last_source = Source.REMOTE
            return result.data

        if not result.ok:
            self.logger.warning(f"Failed to fetch {self.TABLE} from remote store, using local cache: {result.error}")
        else:
            self.logger.info(f"Remote {self.TABLE} is empty, using local cache")

        self.last_source = Source.LOCAL
        rows = [
            r for r in self.read_local()
            if isinstance(r, dict) and all(r.get(k) == v for k, v in filters.items())
        ]
        rows = self._sort_rows(rows)
        return rows[:limit] if limit else rows

    def list_all(self) -> List[E]:
        """All records, ordered per ORDER_BY."""
        return self._to_records(self.fetch_rows())

    def list_where(self, limit: Optional[int] = None, **filters) -> List[E]:
        return self._to_records(self.fetch_rows(filters=filters, limit=limit))

    def get(self, record_id: str) -> Optional[E]:
        """
        Fetch one record by id.

        A record the remote store does not know may still be owned by the
        local cache, so a remote miss also checks the cache.
        """
        result = self.remote.select(self.TABLE, filters={"id": record_id}, limit=1)
        if result.ok and result.data:
            self.last_source = Source.REMOTE
            return self._to_record(result.data[0])

        self.last_source = Source.LOCAL
        for row in self.read_local():
            if isinstance(row, dict) and row.get("id") == record_id:
                return self._to_record(row)
        return None

    # =========================================================================
    # WRITES
    # =========================================================================

    def _fail(self, message: str, error: Optional[Exception] = None) -> OperationResult:
        if error is not None:
            handle_error(error, error_state=self.error_state, user_message=message)
        else:
            self.logger.error(message)
            self.error_state.set(message)
        return OperationResult.fail(message)

    def _prepare_local_row(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        row = dict(payload)
        now = utc_now_iso()
        if not row.get("id"):
            row["id"] = new_id()
        if not row.get("created_at"):
            row["created_at"] = now
        if self._has_updated_at and not row.get("updated_at"):
            row["updated_at"] = now
        return row

    def create_local(self, data: Union[Record, Dict[str, Any]]) -> OperationResult:
        """Write a new record to the local cache only."""
        row = self._prepare_local_row(to_payload(data))
        try:
            self._append_local(row)
        except LocalCacheError as e:
            return self._fail(f"Failed to create {self.LABEL}", e)
        self.logger.info(f"Created {self.LABEL} {row['id']} in local cache")
        return OperationResult.ok(self._to_record(row), Source.LOCAL)

    def create(self, data: Union[Record, Dict[str, Any]]) -> OperationResult:
        """
        Create a record remote-first.

        Returns:
            OperationResult with the stored record; source tells which
            store accepted it
        """
        self.error_state.clear()
        payload = to_payload(data)
        remote_payload = {
            k: v for k, v in payload.items()
            if not (k in self.GENERATED_COLUMNS and v is None)
        }

        result = self.remote.insert(self.TABLE, [remote_payload])
        if result.ok:
            stored = result.first or remote_payload
            return OperationResult.ok(self._to_record(stored) if stored.get("id") else None, Source.REMOTE)

        self.logger.warning(f"Error creating {self.LABEL} in remote store, falling back to local cache: {result.error}")
        return self.create_local(payload)

    def update(self, record_id: str, updates: Union[Record, Dict[str, Any]]) -> OperationResult:
        """Apply a partial update remote-first."""
        self.error_state.clear()
        patch = to_payload(updates)
        patch.pop("id", None)
        if self._has_updated_at:
            patch["updated_at"] = utc_now_iso()

        result = self.remote.update(self.TABLE, patch, {"id": record_id})
        if result.ok:
            return OperationResult.ok(
                self._to_record(result.first) if result.first else None,
                Source.REMOTE,
            )

        self.logger.warning(f"Error updating {self.LABEL} in remote store, falling back to local cache: {result.error}")
        try:
            merged = self._patch_local(record_id, patch)
        except _RecordMissing:
            return self._fail(f"Failed to update {self.LABEL}")
        except LocalCacheError as e:
            return self._fail(f"Failed to update {self.LABEL}", e)

        self._after_local_update(record_id, patch)
        return OperationResult.ok(self._to_record(merged), Source.LOCAL)

    def _after_local_update(self, record_id: str, patch: Dict[str, Any]) -> None:
        """Hook for subclasses that mirror local updates elsewhere."""

    def delete(self, record_id: str) -> OperationResult:
        """Delete a record remote-first. Dependent records are left in place."""
        self.error_state.clear()
        result = self.remote.delete(self.TABLE, {"id": record_id})
        if result.ok:
            return OperationResult.ok(record_id, Source.REMOTE)

        self.logger.warning(f"Error deleting {self.LABEL} from remote store, falling back to local cache: {result.error}")
        try:
            self._remove_local(record_id)
        except _RecordMissing:
            return self._fail(f"Failed to delete {self.LABEL}")
        except LocalCacheError as e:
            return self._fail(f"Failed to delete {self.LABEL}", e)
        return OperationResult.ok(record_id, Source.LOCAL)


class UserOwnedRepository(BaseRepository[E]):
    """
    Repository for records that reference a user (logs, bug reports).

    Creates run the referential pre-check first: when the referenced user
    is not visible in the remote store the record goes to the local cache
    only and the write still succeeds, with
    ``metadata["remote_skipped"] = True``.
    """

    OWNER_FIELD = "user_id"

    def __init__(
        self,
        remote: RemoteStore,
        cache: LocalCache,
        consistency: "ConsistencyMaintainer",
        error_state: Optional[ErrorState] = None,
    ):
        super().__init__(remote, cache, error_state)
        self.consistency = consistency

    def create_checked(self, data: Union[Record, Dict[str, Any]]) -> OperationResult:
        payload = to_payload(data)
        owner_id = payload.get(self.OWNER_FIELD)

        if owner_id and self.consistency.user_exists_remotely(owner_id):
            result = self.create(payload)
            result.metadata["remote_skipped"] = False
            return result

        self.error_state.clear()
        gap = ReferentialIntegrityError(
            f"User not in remote store, writing {self.LABEL} to local cache only",
            user_id=owner_id,
            entity=self.TABLE,
        )
        self.logger.info(str(gap))
        result = self.create_local(payload)
        result.metadata["remote_skipped"] = True
        result.metadata["integrity_gap"] = gap.to_dict()
        return result

    def list_for_owner(self, owner_id: str, limit: Optional[int] = None) -> List[E]:
        return self.list_where(limit=limit, **{self.OWNER_FIELD: owner_id})


