# =============================================================================
# prodomo_core/services/consistency.py
# Cross-store invariant checks for dependent writes
# =============================================================================
"""
ConsistencyMaintainer

Runs inline with the logging write paths:

1. Referential pre-check: before an activity log, download log or bug
   report is sent to the remote store, the referenced user must exist
   there. When the lookup errors or finds nothing, the caller writes the
   record to the local cache only and still reports success.

2. Denormalized counter: after every download log write the user's
   ``total_downloads`` is incremented in whichever store owns the user.
   The increment is at-least-once; a lost remote acknowledgement can add
   a second, local increment. Nothing reconciles the drift.
"""

from __future__ import annotations
from typing import Any, Dict, Optional

from prodomo_core.errors import LocalCacheError
from prodomo_core.logging import get_logger
from prodomo_core.remote import RemoteStore
from prodomo_core.storage import LocalCache

logger = get_logger(__name__)

USERS_TABLE = "users"
USERS_CACHE = "users"
CURRENT_USER_CACHE = "current_user"


class _UserNotCached(Exception):
    pass


class ConsistencyMaintainer:
    """Referential pre-check and total_downloads maintenance."""

    def __init__(self, remote: RemoteStore, cache: LocalCache):
        self.remote = remote
        self.cache = cache

    # =========================================================================
    # REFERENTIAL PRE-CHECK
    # =========================================================================

    def user_exists_remotely(self, user_id: str) -> bool:
        """True only when the remote store answers with a row for user_id."""
        result = self.remote.select(USERS_TABLE, filters={"id": user_id}, columns="id")
        if not result.ok:
            logger.warning(f"User lookup failed for {user_id}: {result.error}")
            return False
        if not result.data:
            logger.info(f"User {user_id} does not exist in remote store")
            return False
        return True

    # =========================================================================
    # DENORMALIZED COUNTER
    # =========================================================================

    def increment_total_downloads(self, user_id: str, try_remote: bool = True) -> Optional[str]:
        """
        Add one to the user's total_downloads.

        Args:
            user_id: User whose counter changes
            try_remote: Attempt the remote store first; False goes straight
                to the local cache (the dependent record was written locally
                because the user is not remotely visible)

        Returns:
            "remote" or "local" for the store that was incremented, or None
            when the user was found in neither
        """
        if not user_id:
            return None

        if try_remote and self._increment_remote(user_id):
            return "remote"

        if self._increment_local(user_id):
            return "local"

        logger.warning(f"Could not update download count for unknown user {user_id}")
        return None

    def _increment_remote(self, user_id: str) -> bool:
        result = self.remote.select(USERS_TABLE, filters={"id": user_id}, columns="total_downloads")
        if not result.ok or not result.data:
            return False

        new_total = (result.first.get("total_downloads") or 0) + 1
        update = self.remote.update(USERS_TABLE, {"total_downloads": new_total}, {"id": user_id})
        if not update.ok:
            logger.warning(f"Failed to write download count for {user_id}: {update.error}")
            return False
        return True

    def _increment_local(self, user_id: str) -> bool:
        updated = False

        def bump(row: Dict[str, Any]) -> Dict[str, Any]:
            row = dict(row)
            row["total_downloads"] = (row.get("total_downloads") or 0) + 1
            return row

        def bump_in_list(rows):
            for index, row in enumerate(rows or []):
                if isinstance(row, dict) and row.get("id") == user_id:
                    rows[index] = bump(row)
                    return rows
            raise _UserNotCached(user_id)

        try:
            if self.cache.exists(USERS_CACHE):
                self.cache.mutate(USERS_CACHE, bump_in_list, default=[])
                updated = True
        except _UserNotCached:
            pass
        except LocalCacheError as e:
            logger.error(f"Failed to update cached download count for {user_id}: {e}")

        current = self.cache.read(CURRENT_USER_CACHE)
        if isinstance(current, dict) and current.get("id") == user_id:
            try:
                self.cache.write(CURRENT_USER_CACHE, bump(current))
                updated = True
            except LocalCacheError as e:
                logger.error(f"Failed to update session user download count: {e}")

        return updated
