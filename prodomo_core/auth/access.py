# =============================================================================
# prodomo_core/auth/access.py
# Access Gate contract
# =============================================================================
"""
The dashboard checks grades before it calls into the data layer; the data
layer itself never re-validates grades on writes. The only place the core
consults the ordering is when it picks recipients for file notifications.
"""

from __future__ import annotations
from typing import Optional, Protocol, Union

from prodomo_core.models import Grade, User


class AccessGate(Protocol):
    """Capability check supplied by the UI's auth layer."""

    def has_access(self, required: Grade) -> bool:
        ...


def grade_allows(user_grade: Union[Grade, str], required: Union[Grade, str]) -> bool:
    """Ordered comparison: Guest < V4 < V5 < Support < Admin."""
    return Grade(user_grade).rank >= Grade(required).rank


class UserAccessGate:
    """AccessGate bound to the signed-in user (None means signed out)."""

    def __init__(self, user: Optional[User]):
        self.user = user

    def has_access(self, required: Grade) -> bool:
        if self.user is None:
            return False
        return grade_allows(self.user.grade, required)
