# =============================================================================
# prodomo_core/services/activity_logger.py
# Named audit-trail entries for the signed-in user
# =============================================================================
"""
ActivityLogger

Thin wrapper over ActivityLogRepository.log_activity that fixes the action
wording used across the dashboard. Logging is best-effort: every method
returns False instead of raising, and does nothing without a signed-in user.
"""

from __future__ import annotations
from typing import Optional

from prodomo_core.errors import error_boundary
from prodomo_core.models import User
from prodomo_core.repositories import ActivityLogRepository


class ActivityLogger:
    def __init__(self, repository: ActivityLogRepository, user: Optional[User] = None):
        self.repository = repository
        self.user = user

    @error_boundary(default_return=False, error_message="Failed to log activity")
    def log(self, action: str, details: Optional[str] = None) -> bool:
        if self.user is None:
            return False
        result = self.repository.log_activity(
            user_id=self.user.id,
            user_name=self.user.name,
            action=action,
            details=details or "",
            ip_address="Unknown",
        )
        return bool(result)

    # Files
    def file_upload(self, file_name: str, file_type: str) -> bool:
        return self.log(f"Uploaded {file_type}", f"File: {file_name}")

    def file_download(self, file_name: str, version: str) -> bool:
        return self.log("Downloaded file", f"{file_name} v{version}")

    def file_delete(self, file_name: str) -> bool:
        return self.log("Deleted file", f"File: {file_name}")

    # Users
    def user_creation(self, user_name: str, grade: str) -> bool:
        return self.log("Created user account", f"User: {user_name} ({grade})")

    def user_grade_update(self, user_name: str, old_grade: str, new_grade: str) -> bool:
        return self.log("Updated user grade", f"{user_name}: {old_grade} → {new_grade}")

    def user_block(self, user_name: str, duration: str) -> bool:
        return self.log("Blocked user", f"{user_name} for {duration}")

    def user_unblock(self, user_name: str) -> bool:
        return self.log("Unblocked user", f"User: {user_name}")

    def user_delete(self, user_name: str) -> bool:
        return self.log("Deleted user account", f"User: {user_name}")

    # Patch notes
    def patch_note_create(self, version: str, title: str) -> bool:
        return self.log("Created patch note", f"v{version}: {title}")

    def patch_note_update(self, version: str, title: str) -> bool:
        return self.log("Updated patch note", f"v{version}: {title}")

    def patch_note_delete(self, version: str) -> bool:
        return self.log("Deleted patch note", f"Version: {version}")

    def patch_note_publish(self, version: str) -> bool:
        return self.log("Published patch note", f"Version: {version}")

    # Session
    def login(self, method: str = "email") -> bool:
        return self.log("Signed in", f"Method: {method}")

    def logout(self) -> bool:
        return self.log("Signed out", "")

    def profile_update(self, changes: str) -> bool:
        return self.log("Updated profile", changes)

    def settings_change(self, setting: str, value: str) -> bool:
        return self.log("Changed setting", f"{setting}: {value}")

    # Bug reports
    def bug_report_submit(self, bug_title: str) -> bool:
        return self.log("Submitted bug report", f"Bug: {bug_title}")

    def bug_status_update(self, bug_title: str, old_status: str, new_status: str) -> bool:
        return self.log("Updated bug status", f"{bug_title}: {old_status} → {new_status}")
