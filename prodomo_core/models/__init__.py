# =============================================================================
# prodomo_core/models/__init__.py
# Entity records and enumerations
# =============================================================================

from .enums import (
    BlockDuration,
    BugCategory,
    BugSeverity,
    BugStatus,
    DocCategory,
    FileStatus,
    FileType,
    Grade,
    MetricType,
    NotificationType,
    PublishStatus,
    VersionType,
)
from .entities import (
    ActivityLog,
    BugReport,
    Documentation,
    DownloadLog,
    Notification,
    PatchNote,
    Record,
    ServerFile,
    SystemMetric,
    User,
    new_id,
    parse_timestamp,
    utc_now,
    utc_now_iso,
)

__all__ = [
    # Enums
    "BlockDuration",
    "BugCategory",
    "BugSeverity",
    "BugStatus",
    "DocCategory",
    "FileStatus",
    "FileType",
    "Grade",
    "MetricType",
    "NotificationType",
    "PublishStatus",
    "VersionType",
    # Records
    "ActivityLog",
    "BugReport",
    "Documentation",
    "DownloadLog",
    "Notification",
    "PatchNote",
    "Record",
    "ServerFile",
    "SystemMetric",
    "User",
    # Helpers
    "new_id",
    "parse_timestamp",
    "utc_now",
    "utc_now_iso",
]
