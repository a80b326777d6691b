# =============================================================================
# prodomo_core/models/enums.py
# Enumerations shared by the Prodomo entities
# =============================================================================

from __future__ import annotations
from datetime import timedelta
from enum import Enum


class Grade(str, Enum):
    """Ordered access tier. Support and Admin share the top of the ladder."""
    GUEST = "Guest"
    V4 = "V4"
    V5 = "V5"
    SUPPORT = "Support"
    ADMIN = "Admin"

    @property
    def rank(self) -> int:
        return _GRADE_RANK[self]


_GRADE_RANK = {
    Grade.GUEST: 0,
    Grade.V4: 1,
    Grade.V5: 2,
    Grade.SUPPORT: 3,
    Grade.ADMIN: 4,
}


class FileType(str, Enum):
    SERVER = "server"
    PLUGIN = "plugin"
    ARCHIVE = "archive"
    DOCUMENTATION = "documentation"


class FileStatus(str, Enum):
    ACTIVE = "active"
    BETA = "beta"
    DEPRECATED = "deprecated"


class PublishStatus(str, Enum):
    """Lifecycle of patch notes and documentation pages."""
    DRAFT = "draft"
    PUBLISHED = "published"


class BugSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class BugCategory(str, Enum):
    GENERAL = "general"
    UI = "ui"
    PERFORMANCE = "performance"
    SECURITY = "security"
    FEATURE = "feature"


class BugStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class DocCategory(str, Enum):
    INFO = "info"
    PRICING = "pricing"
    ABOUT = "about"
    TOS = "tos"
    CHANGELOG = "changelog"
    PARTNERS = "partners"
    FEATURES = "features"
    INSTALLATION = "installation"
    API = "api"
    TROUBLESHOOTING = "troubleshooting"


class VersionType(str, Enum):
    V4 = "v4"
    V5 = "v5"
    GENERAL = "general"


class MetricType(str, Enum):
    DOWNLOADS = "downloads"
    USERS = "users"
    STORAGE = "storage"
    BANDWIDTH = "bandwidth"


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class BlockDuration(str, Enum):
    """Fixed set of block lengths an admin can choose from."""
    THIRTY_MINUTES = "30m"
    ONE_DAY = "1d"
    SEVEN_DAYS = "7d"
    THIRTY_DAYS = "30d"

    @property
    def delta(self) -> timedelta:
        return _BLOCK_DELTAS[self]


_BLOCK_DELTAS = {
    BlockDuration.THIRTY_MINUTES: timedelta(minutes=30),
    BlockDuration.ONE_DAY: timedelta(days=1),
    BlockDuration.SEVEN_DAYS: timedelta(days=7),
    BlockDuration.THIRTY_DAYS: timedelta(days=30),
}
