# =============================================================================
# prodomo_core/repositories/bug_reports.py
# Bug reports, comment threads and status changes
# =============================================================================

from __future__ import annotations
from typing import Any, Dict, List, Optional, Union

from prodomo_core.errors import ValidationError
from prodomo_core.models import BugReport, BugStatus, new_id, utc_now_iso
from .base import OperationResult, UserOwnedRepository


class BugReportRepository(UserOwnedRepository[BugReport]):
    TABLE = "bug_reports"
    RECORD = BugReport
    LABEL = "bug report"
    OWNER_FIELD = "reporter_id"

    def create_report(self, report: Union[BugReport, Dict[str, Any]]) -> OperationResult:
        """File a report; runs the reporter pre-check."""
        return self.create_checked(report)

    def list_by_reporter(self, reporter_id: str) -> List[BugReport]:
        return self.list_for_owner(reporter_id)

    def add_comment(
        self,
        report_id: str,
        author: str,
        content: str,
        author_grade: Optional[str] = None,
    ) -> OperationResult:
        """
        Append a comment.

        There is no server-side append, so the whole comment list is read,
        extended and written back. Two concurrent commenters can lose one
        comment on the remote side.
        """
        report = self.get(report_id)
        if report is None:
            return self._fail("Failed to add comment: bug report not found")

        comment = {
            "id": new_id(),
            "author": author,
            "content": content,
            "created_at": utc_now_iso(),
        }
        if author_grade:
            comment["author_grade"] = author_grade

        return self.update(report_id, {"comments": list(report.comments) + [comment]})

    def update_status(self, report_id: str, status: Union[BugStatus, str]) -> OperationResult:
        """
        Change the status.

        The result metadata carries ``old_status`` so callers can notify the
        reporter.
        """
        try:
            status = BugStatus(status)
        except ValueError:
            return self._fail(
                "Failed to update bug report",
                ValidationError(f"Unknown bug status: {status}", field="status", actual=str(status)),
            )

        report = self.get(report_id)
        old_status = report.status if report else None
        result = self.update(report_id, {"status": status})
        if result:
            result.metadata.update({
                "old_status": old_status,
                "new_status": status,
                "report": report,
            })
        return result
