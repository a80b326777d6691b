# =============================================================================
# prodomo_core/repositories/users.py
# User repository: grades, notes, blocking, guest sessions
# =============================================================================

from __future__ import annotations
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Union

from prodomo_core.errors import LocalCacheError, ValidationError
from prodomo_core.logging import get_logger
from prodomo_core.models import BlockDuration, Grade, User, new_id, parse_timestamp, utc_now
from .base import BaseRepository, OperationResult, Source, to_payload

logger = get_logger(__name__)

CURRENT_USER_CACHE = "current_user"
GUEST_SESSION_LENGTH = timedelta(minutes=5)


def _parse_or_none(user: User, field: str) -> Optional[datetime]:
    try:
        return parse_timestamp(getattr(user, field))
    except (TypeError, ValueError) as e:
        logger.warning(f"Ignoring malformed {field} on user {user.id}: {e}")
        return None


def is_blocked(user: User, now: Optional[datetime] = None) -> bool:
    """
    Effective block state.

    A block whose ``blocked_until`` has passed is soft-expired: the flag
    stays set in storage but the user is no longer blocked. An unreadable
    ``blocked_until`` counts as not blocked.
    """
    if not user.is_blocked or not user.blocked_until:
        return False
    blocked_until = _parse_or_none(user, "blocked_until")
    if blocked_until is None:
        return False
    return blocked_until > (now or utc_now())


def is_guest_expired(user: User, now: Optional[datetime] = None) -> bool:
    if not user.is_guest or not user.guest_expires_at:
        return False
    expires_at = _parse_or_none(user, "guest_expires_at")
    if expires_at is None:
        return False
    return expires_at <= (now or utc_now())


class UserRepository(BaseRepository[User]):
    """
    Users table.

    An empty remote users table means the remote store has not been
    bootstrapped yet, so list reads fall through to the local cache.
    """

    TABLE = "users"
    RECORD = User
    LABEL = "user"
    EMPTY_IS_MISS = True

    # =========================================================================
    # SESSION USER
    # =========================================================================

    def get_current_user(self) -> Optional[User]:
        """The user cached for this device's session, if any."""
        row = self.cache.read(CURRENT_USER_CACHE)
        return self._to_record(row) if isinstance(row, dict) else None

    def set_current_user(self, user: Optional[Union[User, Dict[str, Any]]]) -> None:
        if user is None:
            self.cache.delete(CURRENT_USER_CACHE)
        else:
            self.cache.write(CURRENT_USER_CACHE, to_payload(user))

    def _after_local_update(self, record_id: str, patch: Dict[str, Any]) -> None:
        current = self.cache.read(CURRENT_USER_CACHE)
        if isinstance(current, dict) and current.get("id") == record_id:
            try:
                self.cache.write(CURRENT_USER_CACHE, {**current, **patch})
            except LocalCacheError as e:
                self.logger.error(f"Failed to refresh session user {record_id}: {e}")

    # =========================================================================
    # CREATE / DELETE
    # =========================================================================

    def create_user(
        self,
        name: str,
        email: str,
        grade: Union[Grade, str] = Grade.V4,
        user_id: Optional[str] = None,
    ) -> OperationResult:
        """Create a regular account; the id is generated client-side."""
        now = utc_now().isoformat()
        user = User(
            id=user_id or new_id(),
            name=name,
            email=email,
            grade=Grade(grade),
            join_date=now,
            last_active=now,
            total_downloads=0,
            is_guest=False,
            is_blocked=False,
        )
        return self.create(user)

    def delete_user(self, user_id: str) -> OperationResult:
        """Delete the account. Logs and bug reports that reference it are kept."""
        return self.delete(user_id)

    def create_guest(self, now: Optional[datetime] = None) -> OperationResult:
        """
        Bootstrap a temporary guest account.

        The guest is inserted into the remote store when it is reachable and
        is always mirrored into the local users collection and the session
        user entry, so the session works offline.
        """
        self.error_state.clear()
        now = now or utc_now()
        guest_id = new_id()
        guest = User(
            id=guest_id,
            name="Guest User",
            email=f"{guest_id}@temp.local",
            grade=Grade.GUEST,
            join_date=now.isoformat(),
            last_active=now.isoformat(),
            total_downloads=0,
            is_guest=True,
            guest_expires_at=(now + GUEST_SESSION_LENGTH).isoformat(),
            is_blocked=False,
        )

        source = Source.REMOTE if self.ensure_remote(guest) else Source.LOCAL
        row = self._prepare_local_row(guest.to_dict())
        try:
            self._append_local(row)
            self.set_current_user(row)
        except LocalCacheError as e:
            return self._fail("Failed to create guest session", e)

        self.logger.info(f"Guest session {guest_id} created (remote={source is Source.REMOTE})")
        return OperationResult.ok(self._to_record(row), source)

    def ensure_remote(self, user: User) -> bool:
        """Insert user into the remote store unless it is already there."""
        existing = self.remote.select(self.TABLE, filters={"id": user.id}, columns="id")
        if not existing.ok:
            self.logger.warning(f"Error checking if user exists: {existing.error}")
            return False
        if existing.data:
            return True

        payload = {k: v for k, v in to_payload(user).items() if v is not None}
        inserted = self.remote.insert(self.TABLE, [payload])
        if not inserted.ok:
            self.logger.warning(f"Error inserting user {user.id} into remote store: {inserted.error}")
        return inserted.ok

    # =========================================================================
    # UPDATES
    # =========================================================================

    def update_user(self, user_id: str, updates: Dict[str, Any]) -> OperationResult:
        return self.update(user_id, updates)

    def update_grade(self, user_id: str, grade: Union[Grade, str]) -> OperationResult:
        try:
            grade = Grade(grade)
        except ValueError:
            return self._fail(
                "Failed to update user",
                ValidationError(f"Unknown grade: {grade}", field="grade", actual=str(grade)),
            )
        return self.update(user_id, {"grade": grade})

    def update_notes(self, user_id: str, notes: str) -> OperationResult:
        return self.update(user_id, {"admin_notes": notes})

    def block(
        self,
        user_id: str,
        duration: Union[BlockDuration, str],
        now: Optional[datetime] = None,
    ) -> OperationResult:
        """Block for one of the fixed durations (30m, 1d, 7d, 30d)."""
        try:
            duration = BlockDuration(duration)
        except ValueError:
            return self._fail(
                "Failed to block user",
                ValidationError(
                    f"Unknown block duration: {duration}",
                    field="duration",
                    expected=", ".join(d.value for d in BlockDuration),
                    actual=str(duration),
                ),
            )

        blocked_until = (now or utc_now()) + duration.delta
        return self.update(user_id, {"is_blocked": True, "blocked_until": blocked_until.isoformat()})

    def unblock(self, user_id: str) -> OperationResult:
        return self.update(user_id, {"is_blocked": False, "blocked_until": None})

    def touch(self, user_id: str) -> OperationResult:
        """Refresh last_active."""
        return self.update(user_id, {"last_active": utc_now().isoformat()})
