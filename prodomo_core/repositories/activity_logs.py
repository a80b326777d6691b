# =============================================================================
# prodomo_core/repositories/activity_logs.py
# Append-only audit trail of user and admin actions
# =============================================================================

from __future__ import annotations
from typing import List

from prodomo_core.models import ActivityLog
from .base import OperationResult, UserOwnedRepository

DEFAULT_LOG_LIMIT = 100


class ActivityLogRepository(UserOwnedRepository[ActivityLog]):
    TABLE = "activity_logs"
    RECORD = ActivityLog
    LABEL = "activity log"

    def log_activity(
        self,
        user_id: str,
        user_name: str,
        action: str,
        details: str = "",
        ip_address: str = "Unknown",
    ) -> OperationResult:
        """Record one action; the action text is free-form."""
        return self.create_checked({
            "user_id": user_id,
            "user_name": user_name,
            "action": action,
            "details": details,
            "ip_address": ip_address or "Unknown",
        })

    def list_recent(self, limit: int = DEFAULT_LOG_LIMIT) -> List[ActivityLog]:
        return self.list_where(limit=limit)
