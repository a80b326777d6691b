# =============================================================================
# prodomo_core/models/entities.py
# Typed records for every entity the dashboard persists
# =============================================================================
"""
Entity records.

Every entity is a dataclass that converts to and from the JSON-shaped dict
stored in both the remote tables and the local cache. Enum fields are
coerced on the way in and written as their string values on the way out;
keys the record does not know are ignored.
"""

from __future__ import annotations
import uuid
from dataclasses import dataclass, field, fields, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Type, TypeVar

from .enums import (
    BugCategory,
    BugSeverity,
    BugStatus,
    DocCategory,
    FileStatus,
    FileType,
    Grade,
    MetricType,
    NotificationType,
    PublishStatus,
    VersionType,
)

R = TypeVar("R", bound="Record")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return utc_now().isoformat()


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def new_id() -> str:
    return str(uuid.uuid4())


class Record:
    """Dict conversion shared by all entity dataclasses."""

    ENUM_FIELDS: ClassVar[Dict[str, Type[Enum]]] = {}

    @classmethod
    def from_dict(cls: Type[R], data: Dict[str, Any]) -> R:
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        for name, enum_cls in cls.ENUM_FIELDS.items():
            if kwargs.get(name) is not None:
                kwargs[name] = enum_cls(kwargs[name])
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        for name in self.ENUM_FIELDS:
            value = result.get(name)
            if isinstance(value, Enum):
                result[name] = value.value
        return result


# =============================================================================
# USERS
# =============================================================================

@dataclass
class User(Record):
    id: str
    name: str
    email: str
    grade: Grade = Grade.GUEST
    join_date: Optional[str] = None
    last_active: Optional[str] = None
    total_downloads: int = 0
    is_guest: bool = False
    guest_expires_at: Optional[str] = None
    is_blocked: bool = False
    blocked_until: Optional[str] = None
    admin_notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    ENUM_FIELDS: ClassVar[Dict[str, Type[Enum]]] = {"grade": Grade}


# =============================================================================
# FILES / RELEASES
# =============================================================================

@dataclass
class ServerFile(Record):
    id: str
    name: str
    version: str
    description: str = ""
    file_url: str = ""
    file_size: int = 0
    file_type: FileType = FileType.SERVER
    min_grade: Grade = Grade.V4
    status: FileStatus = FileStatus.ACTIVE
    download_count: int = 0
    changelog: List[str] = field(default_factory=list)
    created_by: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    ENUM_FIELDS: ClassVar[Dict[str, Type[Enum]]] = {
        "file_type": FileType,
        "min_grade": Grade,
        "status": FileStatus,
    }


@dataclass
class PatchNote(Record):
    id: str
    version: str
    title: str
    content: str = ""
    status: PublishStatus = PublishStatus.DRAFT
    author_id: Optional[str] = None
    author_name: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    ENUM_FIELDS: ClassVar[Dict[str, Type[Enum]]] = {"status": PublishStatus}

    @property
    def is_published(self) -> bool:
        return self.status == PublishStatus.PUBLISHED


@dataclass
class Documentation(Record):
    id: str
    title: str
    slug: str
    content: str = ""
    category: DocCategory = DocCategory.INFO
    version_type: VersionType = VersionType.GENERAL
    status: PublishStatus = PublishStatus.DRAFT
    order_index: int = 0
    meta_description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    images: List[str] = field(default_factory=list)
    author_id: Optional[str] = None
    author_name: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    ENUM_FIELDS: ClassVar[Dict[str, Type[Enum]]] = {
        "category": DocCategory,
        "version_type": VersionType,
        "status": PublishStatus,
    }


# =============================================================================
# LOGS
# =============================================================================

@dataclass
class DownloadLog(Record):
    id: str
    user_id: str
    user_name: str = ""
    file_id: Optional[str] = None
    file_name: str = ""
    file_version: str = ""
    ip_address: str = "Unknown"
    user_agent: str = ""
    created_at: Optional[str] = None


@dataclass
class ActivityLog(Record):
    id: str
    user_id: str
    user_name: str = ""
    action: str = ""
    details: str = ""
    ip_address: str = "Unknown"
    created_at: Optional[str] = None


# =============================================================================
# BUG REPORTS
# =============================================================================

@dataclass
class BugReport(Record):
    id: str
    title: str
    description: str = ""
    severity: BugSeverity = BugSeverity.MEDIUM
    category: BugCategory = BugCategory.GENERAL
    status: BugStatus = BugStatus.OPEN
    reporter_id: Optional[str] = None
    reporter_name: Optional[str] = None
    assignee_id: Optional[str] = None
    assignee_name: Optional[str] = None
    steps: List[str] = field(default_factory=list)
    expected_behavior: str = ""
    actual_behavior: str = ""
    environment: Dict[str, str] = field(default_factory=dict)
    attachments: List[str] = field(default_factory=list)
    # Each comment: {id, author, author_grade?, content, created_at}
    comments: List[Dict[str, Any]] = field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    ENUM_FIELDS: ClassVar[Dict[str, Type[Enum]]] = {
        "severity": BugSeverity,
        "category": BugCategory,
        "status": BugStatus,
    }


# =============================================================================
# METRICS / NOTIFICATIONS
# =============================================================================

@dataclass
class SystemMetric(Record):
    id: str
    metric_type: MetricType
    value: float
    date: str
    created_at: Optional[str] = None

    ENUM_FIELDS: ClassVar[Dict[str, Type[Enum]]] = {"metric_type": MetricType}


@dataclass
class Notification(Record):
    id: str
    title: str
    message: str
    type: NotificationType = NotificationType.INFO
    read: bool = False
    created_at: Optional[str] = None
    related_id: Optional[str] = None
    action_url: Optional[str] = None

    ENUM_FIELDS: ClassVar[Dict[str, Type[Enum]]] = {"type": NotificationType}
