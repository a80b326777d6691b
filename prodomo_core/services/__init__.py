# =============================================================================
# prodomo_core/services/__init__.py
# Cross-entity services built on the repositories
# =============================================================================

from .consistency import ConsistencyMaintainer
from .notifications import MAX_NOTIFICATIONS, NotificationCenter, bug_status_message
from .activity_logger import ActivityLogger
from .data_access import DataAccessLayer, get_data_access

__all__ = [
    "ConsistencyMaintainer",
    "NotificationCenter",
    "MAX_NOTIFICATIONS",
    "bug_status_message",
    "ActivityLogger",
    "DataAccessLayer",
    "get_data_access",
]
