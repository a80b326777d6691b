# =============================================================================
# prodomo_core/services/notifications.py
# Per-user notification lists kept in the local cache
# =============================================================================
"""
NotificationCenter

Each user has a list under ``<prefix>_notifications_<userId>``, newest
first, capped at MAX_NOTIFICATIONS entries (the oldest are dropped). There
is no remote notification table; fan-out writes go to the local cache only
and are best-effort: a failed write for one recipient is logged and the
remaining recipients still get theirs.
"""

from __future__ import annotations
import secrets
import string
import time
from typing import Any, Dict, Iterable, List, Optional, Union

from prodomo_core.auth import grade_allows
from prodomo_core.errors import LocalCacheError, error_boundary
from prodomo_core.logging import get_logger
from prodomo_core.models import (
    BugStatus,
    Grade,
    Notification,
    NotificationType,
    PatchNote,
    ServerFile,
    User,
    utc_now_iso,
)
from prodomo_core.storage import LocalCache

logger = get_logger(__name__)

MAX_NOTIFICATIONS = 50
GUEST_RECIPIENT = "guest"

_ID_ALPHABET = string.ascii_lowercase + string.digits


def notification_id() -> str:
    """Id of the form ``notif_<epoch ms>_<9 random chars>``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"notif_{int(time.time() * 1000)}_{suffix}"


def bug_status_message(title: str, old_status: str, new_status: str) -> Dict[str, Any]:
    """Message text and type for a bug status change."""
    if new_status == BugStatus.IN_PROGRESS.value:
        return {
            "message": f'Your bug report "{title}" is now being worked on by our team.',
            "type": NotificationType.INFO,
        }
    if new_status == BugStatus.RESOLVED.value:
        return {
            "message": f'Great news! Your bug report "{title}" has been resolved.',
            "type": NotificationType.SUCCESS,
        }
    if new_status == BugStatus.CLOSED.value:
        return {
            "message": f'Your bug report "{title}" has been closed.',
            "type": NotificationType.INFO,
        }
    return {
        "message": f'Your bug report "{title}" status changed from {old_status} to {new_status}.',
        "type": NotificationType.INFO,
    }


def _value(v: Any) -> Any:
    return getattr(v, "value", v)


class NotificationCenter:
    """Reads and writes per-user notification lists."""

    def __init__(self, cache: LocalCache, max_items: int = MAX_NOTIFICATIONS):
        self.cache = cache
        self.max_items = max_items

    @staticmethod
    def cache_name(user_id: Optional[str]) -> str:
        return f"notifications_{user_id or GUEST_RECIPIENT}"

    def _rows(self, user_id: Optional[str]) -> List[Dict[str, Any]]:
        rows = self.cache.read(self.cache_name(user_id), default=[])
        return [r for r in rows if isinstance(r, dict)] if isinstance(rows, list) else []

    # =========================================================================
    # READS
    # =========================================================================

    def get_notifications(self, user_id: Optional[str]) -> List[Notification]:
        notifications = []
        for row in self._rows(user_id):
            try:
                notifications.append(Notification.from_dict(row))
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed notification {row.get('id')}: {e}")
        return notifications

    def unread_count(self, user_id: Optional[str]) -> int:
        return sum(1 for row in self._rows(user_id) if not row.get("read"))

    # =========================================================================
    # WRITES
    # =========================================================================

    def add(
        self,
        user_id: Optional[str],
        title: str,
        message: str,
        type: Union[NotificationType, str] = NotificationType.INFO,
        related_id: Optional[str] = None,
        action_url: Optional[str] = None,
    ) -> Notification:
        """
        Prepend a notification to the user's list.

        Raises:
            LocalCacheError: If the list cannot be written
        """
        notification = Notification(
            id=notification_id(),
            title=title,
            message=message,
            type=NotificationType(type),
            read=False,
            created_at=utc_now_iso(),
            related_id=related_id,
            action_url=action_url,
        )
        row = notification.to_dict()

        def prepend(rows):
            rows = rows if isinstance(rows, list) else []
            return ([row] + rows)[: self.max_items]

        self.cache.mutate(self.cache_name(user_id), prepend, default=[])
        return notification

    def _rewrite(self, user_id: Optional[str], fn) -> None:
        self.cache.mutate(
            self.cache_name(user_id),
            lambda rows: fn([r for r in rows if isinstance(r, dict)] if isinstance(rows, list) else []),
            default=[],
        )

    def mark_read(self, user_id: Optional[str], notification_id: str) -> None:
        self._rewrite(user_id, lambda rows: [
            {**r, "read": True} if r.get("id") == notification_id else r for r in rows
        ])

    def mark_all_read(self, user_id: Optional[str]) -> None:
        self._rewrite(user_id, lambda rows: [{**r, "read": True} for r in rows])

    def remove(self, user_id: Optional[str], notification_id: str) -> None:
        self._rewrite(user_id, lambda rows: [r for r in rows if r.get("id") != notification_id])

    def clear(self, user_id: Optional[str]) -> None:
        self.cache.write(self.cache_name(user_id), [])

    # =========================================================================
    # FAN-OUT
    # =========================================================================

    def fan_out(self, recipient_ids: Iterable[str], **notification) -> int:
        """
        Add the same notification to every recipient's list.

        Returns:
            Number of recipients that received it
        """
        delivered = 0
        for user_id in recipient_ids:
            try:
                self.add(user_id, **notification)
                delivered += 1
            except LocalCacheError as e:
                logger.error(f"Failed to notify user {user_id}: {e}")
        logger.info(f"Notification '{notification.get('title')}' delivered to {delivered} users")
        return delivered

    @error_boundary(default_return=0, error_message="Failed to send patch note notifications")
    def notify_patch_note_published(
        self,
        note: PatchNote,
        users: Iterable[User],
        exclude_user_id: Optional[str] = None,
    ) -> int:
        """Tell every other user that a patch note went live."""
        recipients = [u.id for u in users if u.id != exclude_user_id]
        return self.fan_out(
            recipients,
            title="New Patch Notes Published",
            message=f"Version {note.version} patch notes are now available: {note.title}",
            type=NotificationType.SUCCESS,
            related_id="patch_notes",
            action_url="/patch-notes",
        )

    @error_boundary(default_return=0, error_message="Failed to send file notifications")
    def notify_file(
        self,
        file: ServerFile,
        users: Iterable[User],
        is_update: bool = False,
        exclude_user_id: Optional[str] = None,
    ) -> int:
        """Tell every user whose grade reaches the file's min_grade about a new or updated file."""
        min_grade = file.min_grade or Grade.GUEST
        recipients = [
            u.id for u in users
            if u.id != exclude_user_id and grade_allows(u.grade, min_grade)
        ]
        if is_update:
            title = "File Updated"
            message = f"{file.name} has been updated to v{file.version}"
        else:
            title = "New File Available"
            message = f"{file.name} v{file.version} is now available for download"

        return self.fan_out(
            recipients,
            title=title,
            message=message,
            type=NotificationType.INFO,
            related_id=file.id,
            action_url="/downloads",
        )

    @error_boundary(default_return=None, error_message="Failed to send bug status notification")
    def notify_bug_status(
        self,
        reporter_id: str,
        bug_id: str,
        bug_title: str,
        old_status: Union[BugStatus, str, None],
        new_status: Union[BugStatus, str],
    ) -> Optional[Notification]:
        """Tell the reporter that their bug report changed status."""
        if not reporter_id:
            return None
        text = bug_status_message(bug_title, _value(old_status), _value(new_status))
        return self.add(
            reporter_id,
            title="Bug Report Update",
            message=text["message"],
            type=text["type"],
            related_id=bug_id,
            action_url="/bug-report",
        )
