# =============================================================================
# prodomo_core/repositories/server_files.py
# Downloadable server builds, plugins and archives
# =============================================================================

from __future__ import annotations
from typing import List, Optional, Union

from prodomo_core.auth import grade_allows
from prodomo_core.models import FileStatus, Grade, ServerFile
from .base import BaseRepository


class ServerFileRepository(BaseRepository[ServerFile]):
    TABLE = "server_files"
    RECORD = ServerFile
    LABEL = "server file"

    def list_for_grade(self, grade: Union[Grade, str]) -> List[ServerFile]:
        """Files a user of the given grade may download, deprecated ones excluded."""
        return [
            f for f in self.list_all()
            if f.status != FileStatus.DEPRECATED and grade_allows(grade, f.min_grade)
        ]

    def latest(self, name: str) -> Optional[ServerFile]:
        """Newest upload with this name."""
        files = self.list_where(name=name)
        return files[0] if files else None
