# =============================================================================
# prodomo_core/repositories/documentation.py
# Documentation pages ordered by order_index
# =============================================================================

from __future__ import annotations
from typing import List, Optional, Union

from prodomo_core.models import DocCategory, Documentation, PublishStatus, VersionType
from .base import BaseRepository


class DocumentationRepository(BaseRepository[Documentation]):
    TABLE = "documentation"
    RECORD = Documentation
    LABEL = "documentation"
    ORDER_BY = "order_index"
    ASCENDING = True

    def get_by_slug(self, slug: str) -> Optional[Documentation]:
        docs = self.list_where(limit=1, slug=slug)
        return docs[0] if docs else None

    def list_by_version(
        self,
        version_type: Union[VersionType, str],
        category: Optional[Union[DocCategory, str]] = None,
        published_only: bool = True,
    ) -> List[Documentation]:
        """Pages for one version track, optionally narrowed to a category."""
        try:
            filters = {"version_type": VersionType(version_type)}
            if category is not None:
                filters["category"] = DocCategory(category)
        except ValueError as e:
            self.logger.warning(f"Unknown documentation filter, returning no pages: {e}")
            return []
        if published_only:
            filters["status"] = PublishStatus.PUBLISHED
        return self.list_where(**filters)
