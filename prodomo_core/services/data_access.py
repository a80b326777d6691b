# =============================================================================
# prodomo_core/services/data_access.py
# DataAccessLayer - single entry point for dashboard pages
# =============================================================================
"""
DataAccessLayer - the object every dashboard page talks to.

It wires the remote store, the local cache and the shared error state into
one repository per entity, and owns the flows that span more than one
repository: publishing with notification fan-out, file notifications,
bug status notifications and the download flow.

Usage:
------
from prodomo_core import get_data_access

dal = get_data_access()

users = dal.users.list_all()
if not dal.users.update_grade(user_id, "V5"):
    st.error(dal.error_message)

dal.record_download(current_user, server_file)
"""

from __future__ import annotations
import threading
from typing import Any, Dict, List, Optional, Union

from prodomo_core.bootstrap import initialize_remote_defaults, seed_local_defaults
from prodomo_core.config import CoreConfig, load_config
from prodomo_core.errors import error_boundary
from prodomo_core.logging import get_logger, setup_logging
from prodomo_core.models import (
    BugStatus,
    MetricType,
    PatchNote,
    ServerFile,
    SystemMetric,
    User,
)
from prodomo_core.remote import RemoteStore, UnavailableRemoteStore
from prodomo_core.remote.supabase_store import SupabaseStore
from prodomo_core.repositories import (
    ActivityLogRepository,
    BugReportRepository,
    DocumentationRepository,
    DownloadLogRepository,
    OperationResult,
    PatchNoteRepository,
    ServerFileRepository,
    SystemMetricRepository,
    UserRepository,
    to_payload,
)
from prodomo_core.state import ErrorState, SessionErrorState
from prodomo_core.storage import LocalCache, SqliteKeyValueStore
from .activity_logger import ActivityLogger
from .consistency import ConsistencyMaintainer
from .notifications import NotificationCenter

logger = get_logger(__name__)


class DataAccessLayer:
    """Repositories plus the cross-entity flows built on them."""

    def __init__(
        self,
        remote: RemoteStore,
        cache: LocalCache,
        error_state: Optional[ErrorState] = None,
    ):
        self.remote = remote
        self.cache = cache
        self.error_state = error_state if error_state is not None else ErrorState()

        self.consistency = ConsistencyMaintainer(remote, cache)
        self.notifications = NotificationCenter(cache)

        self.users = UserRepository(remote, cache, self.error_state)
        self.server_files = ServerFileRepository(remote, cache, self.error_state)
        self.patch_notes = PatchNoteRepository(remote, cache, self.error_state)
        self.documentation = DocumentationRepository(remote, cache, self.error_state)
        self.system_metrics = SystemMetricRepository(remote, cache, self.error_state)
        self.bug_reports = BugReportRepository(remote, cache, self.consistency, self.error_state)
        self.activity_logs = ActivityLogRepository(remote, cache, self.consistency, self.error_state)
        self.download_logs = DownloadLogRepository(remote, cache, self.consistency, self.error_state)

    @classmethod
    def from_config(
        cls,
        config: CoreConfig,
        error_state: Optional[ErrorState] = None,
    ) -> DataAccessLayer:
        """Build the production wiring: Supabase (when configured) over a SQLite cache."""
        if config.has_remote:
            remote: RemoteStore = SupabaseStore.from_credentials(config.supabase_url, config.supabase_key)
        else:
            remote = UnavailableRemoteStore("Supabase credentials not configured")

        cache = LocalCache(SqliteKeyValueStore(config.cache_path), prefix=config.storage_prefix)
        return cls(remote, cache, error_state)

    @property
    def error_message(self) -> Optional[str]:
        """Message of the most recent failed write, for display."""
        return self.error_state.message

    def activity_logger(self, user: Optional[User] = None) -> ActivityLogger:
        """ActivityLogger bound to user (defaults to the session user)."""
        return ActivityLogger(self.activity_logs, user or self.users.get_current_user())

    # =========================================================================
    # PATCH NOTES
    # =========================================================================

    def _recipients(self) -> List[User]:
        return self.users.list_all()

    def create_patch_note(
        self,
        data: Union[PatchNote, Dict[str, Any]],
        actor_id: Optional[str] = None,
    ) -> OperationResult:
        """Create a note; one created as published notifies every other user."""
        result = self.patch_notes.create(data)
        note = result.data
        if result and isinstance(note, PatchNote) and note.is_published:
            result.metadata["notified"] = self.notifications.notify_patch_note_published(
                note, self._recipients(), exclude_user_id=actor_id
            )
        return result

    def publish_patch_note(self, note_id: str, actor_id: Optional[str] = None) -> OperationResult:
        """
        Publish a draft and fan out the announcement.

        Re-publishing is a no-op: no write and no second fan-out.
        """
        result = self.patch_notes.publish(note_id)
        if not result or result.metadata.get("already_published"):
            result.metadata.setdefault("notified", 0)
            return result

        result.metadata["notified"] = self.notifications.notify_patch_note_published(
            result.data, self._recipients(), exclude_user_id=actor_id
        )
        return result

    # =========================================================================
    # SERVER FILES
    # =========================================================================

    def save_server_file(
        self,
        data: Union[ServerFile, Dict[str, Any]],
        file_id: Optional[str] = None,
        notify_users: bool = False,
        actor_id: Optional[str] = None,
    ) -> OperationResult:
        """
        Create (no file_id) or update a file.

        With notify_users, every user whose grade reaches the file's
        min_grade is notified once the write succeeds.
        """
        is_update = file_id is not None
        if is_update:
            result = self.server_files.update(file_id, data)
        else:
            result = self.server_files.create(data)

        if not result or not notify_users:
            return result

        stored = result.data
        if not isinstance(stored, ServerFile):
            stored = self.server_files.get(file_id) if is_update else None
        if stored is None:
            payload = to_payload(data)
            payload.setdefault("id", file_id)
            stored = ServerFile.from_dict(payload)

        result.metadata["notified"] = self.notifications.notify_file(
            stored, self._recipients(), is_update=is_update, exclude_user_id=actor_id
        )
        return result

    # =========================================================================
    # BUG REPORTS
    # =========================================================================

    def update_bug_status(self, report_id: str, status: Union[BugStatus, str]) -> OperationResult:
        """Change a report's status and notify its reporter."""
        result = self.bug_reports.update_status(report_id, status)
        if not result:
            return result

        report = result.metadata.get("report")
        old_status = result.metadata.get("old_status")
        new_status = result.metadata.get("new_status")
        if report is not None and old_status != new_status:
            self.notifications.notify_bug_status(
                report.reporter_id, report.id, report.title, old_status, new_status
            )
        return result

    # =========================================================================
    # DOWNLOADS
    # =========================================================================

    @error_boundary(default_return=False, error_message="Download logging failed")
    def record_download(
        self,
        user: User,
        file: ServerFile,
        ip_address: str = "Unknown",
        user_agent: str = "",
    ) -> bool:
        """
        Log a download and the matching activity entry.

        Never raises; the download itself proceeds whatever this returns.
        """
        result = self.download_logs.log_download(
            user_id=user.id,
            user_name=user.name,
            file_id=file.id,
            file_name=file.name,
            file_version=file.version,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.activity_logger(user).file_download(file.name, file.version)
        return bool(result)

    # =========================================================================
    # METRICS / STATUS
    # =========================================================================

    def get_system_metrics(
        self,
        metric_type: Optional[Union[MetricType, str]] = None,
        days: int = 30,
    ) -> List[SystemMetric]:
        return self.system_metrics.get_system_metrics(metric_type, days)

    def get_status(self) -> Dict[str, Any]:
        """Status information for UI display."""
        is_connected = getattr(self.remote, "is_connected", None)
        return {
            "remote_configured": not isinstance(self.remote, UnavailableRemoteStore),
            "remote_connected": bool(is_connected()) if callable(is_connected) else None,
            "cache_prefix": self.cache.prefix,
            "cache_collections": self.cache.names(),
            "last_error": self.error_message,
        }


# Singleton accessor
_data_access: Optional[DataAccessLayer] = None
_data_access_lock = threading.Lock()


def get_data_access(config: Optional[CoreConfig] = None) -> DataAccessLayer:
    """
    Get the global DataAccessLayer.

    The first call loads configuration (Streamlit secrets, then
    environment), sets up logging, binds the error message to
    ``st.session_state`` and seeds default data: the remote users table
    when it is empty, and any local collection that does not exist yet.
    """
    global _data_access
    if _data_access is None:
        with _data_access_lock:
            if _data_access is None:
                config = config or load_config()
                setup_logging(config.log_level_value, log_to_file=config.log_to_file)
                _data_access = DataAccessLayer.from_config(config, SessionErrorState())
                if config.has_remote:
                    initialize_remote_defaults(_data_access.remote)
                seed_local_defaults(_data_access.cache)
                logger.info(f"Data access layer ready (remote configured: {config.has_remote})")
    return _data_access
