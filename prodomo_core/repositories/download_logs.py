# =============================================================================
# prodomo_core/repositories/download_logs.py
# Download events and the user download counter
# =============================================================================

from __future__ import annotations
from typing import List, Optional

from prodomo_core.models import DownloadLog
from .activity_logs import DEFAULT_LOG_LIMIT
from .base import OperationResult, UserOwnedRepository


class DownloadLogRepository(UserOwnedRepository[DownloadLog]):
    """
    Download log writes.

    Every successful write is followed by a total_downloads increment for
    the user. When the log went to the local cache because the user is not
    remotely visible, the counter is bumped in the local cache only.
    """

    TABLE = "download_logs"
    RECORD = DownloadLog
    LABEL = "download log"

    def log_download(
        self,
        user_id: str,
        user_name: str,
        file_id: Optional[str],
        file_name: str,
        file_version: str,
        ip_address: str = "Unknown",
        user_agent: str = "",
    ) -> OperationResult:
        result = self.create_checked({
            "user_id": user_id,
            "user_name": user_name,
            "file_id": file_id,
            "file_name": file_name,
            "file_version": file_version,
            "ip_address": ip_address or "Unknown",
            "user_agent": user_agent,
        })
        if not result:
            return result

        counted = self.consistency.increment_total_downloads(
            user_id, try_remote=not result.metadata.get("remote_skipped", False)
        )
        result.metadata["counter_source"] = counted
        return result

    def list_recent(self, limit: int = DEFAULT_LOG_LIMIT) -> List[DownloadLog]:
        return self.list_where(limit=limit)

    def count_for_user(self, user_id: str) -> int:
        """Number of logged downloads for a user in the store currently serving reads."""
        return len(self.fetch_rows(filters={"user_id": user_id}))
