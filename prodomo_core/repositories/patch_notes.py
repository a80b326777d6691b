# =============================================================================
# prodomo_core/repositories/patch_notes.py
# Release notes with a draft -> published transition
# =============================================================================

from __future__ import annotations
from typing import List

from prodomo_core.models import PatchNote, PublishStatus
from .base import BaseRepository, OperationResult


class PatchNoteRepository(BaseRepository[PatchNote]):
    TABLE = "patch_notes"
    RECORD = PatchNote
    LABEL = "patch note"

    def list_published(self) -> List[PatchNote]:
        return self.list_where(status=PublishStatus.PUBLISHED)

    def publish(self, note_id: str) -> OperationResult:
        """
        Move a note from draft to published.

        Publishing a note that is already published changes nothing: the
        record (and its updated_at) is left alone and the result carries
        ``metadata["already_published"] = True`` so callers skip the
        notification fan-out.
        """
        note = self.get(note_id)
        if note is None:
            return self._fail("Failed to publish patch note: not found")

        if note.is_published:
            self.logger.info(f"Patch note {note_id} is already published")
            return OperationResult.ok(note, self.last_source, metadata={"already_published": True})

        result = self.update(note_id, {"status": PublishStatus.PUBLISHED})
        if result:
            result.metadata["already_published"] = False
            if result.data is None:
                note.status = PublishStatus.PUBLISHED
                result.data = note
        return result

    def unpublish(self, note_id: str) -> OperationResult:
        return self.update(note_id, {"status": PublishStatus.DRAFT})
