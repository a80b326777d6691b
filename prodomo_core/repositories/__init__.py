# =============================================================================
# prodomo_core/repositories/__init__.py
# Entity repositories (remote first, local cache fallback)
# =============================================================================

from .base import BaseRepository, OperationResult, Source, UserOwnedRepository, to_payload
from .users import UserRepository, is_blocked, is_guest_expired
from .server_files import ServerFileRepository
from .patch_notes import PatchNoteRepository
from .documentation import DocumentationRepository
from .bug_reports import BugReportRepository
from .activity_logs import ActivityLogRepository
from .download_logs import DownloadLogRepository
from .system_metrics import SystemMetricRepository, metrics_frame, synthesize_metrics

__all__ = [
    "BaseRepository",
    "OperationResult",
    "Source",
    "UserOwnedRepository",
    "to_payload",
    "UserRepository",
    "is_blocked",
    "is_guest_expired",
    "ServerFileRepository",
    "PatchNoteRepository",
    "DocumentationRepository",
    "BugReportRepository",
    "ActivityLogRepository",
    "DownloadLogRepository",
    "SystemMetricRepository",
    "metrics_frame",
    "synthesize_metrics",
]
