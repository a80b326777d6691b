# =============================================================================
# prodomo_core/bootstrap.py
# Default dataset for fresh remote and local stores
# =============================================================================
"""
Seeds the default accounts, files and release notes.

initialize_remote_defaults() inserts the four default users when the remote
``users`` table is empty. seed_local_defaults() fills an empty local cache
so the dashboard has something to show when it starts offline.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional

from prodomo_core.errors import LocalCacheError
from prodomo_core.logging import LogContext, get_logger
from prodomo_core.models import new_id, utc_now_iso
from prodomo_core.remote import RemoteStore
from prodomo_core.storage import LocalCache

logger = get_logger(__name__)

ADMIN_USER_ID = "11111111-1111-1111-1111-111111111111"

_DEFAULT_USERS = (
    # id, name, email, grade, total_downloads, admin_notes
    (ADMIN_USER_ID, "Admin User", "admin@prodomo.local", "Admin", 0,
     "System administrator account"),
    ("22222222-2222-2222-2222-222222222222", "V4 User", "v4@prodomo.local", "V4", 5,
     "Standard V4 user account"),
    ("33333333-3333-3333-3333-333333333333", "V5 User", "v5@prodomo.local", "V5", 12,
     "Advanced V5 user account"),
    ("44444444-4444-4444-4444-444444444444", "Support User", "support@prodomo.local", "Support", 3,
     "Support team member with bug management access"),
)

PATCH_NOTE_2_1_4 = """## What's New in v2.1.4

### Security Enhancements
- Implemented advanced encryption for data transmission
- Added multi-factor authentication support
- Enhanced input validation and sanitization

### Performance Improvements
- Optimized database queries for 25% faster response times
- Reduced memory usage by 15%
- Improved caching mechanisms

### Bug Fixes
- Fixed critical memory leak in long-running processes
- Resolved issue with concurrent user sessions
- Corrected timezone handling in logs
"""


def default_users(now: Optional[str] = None) -> List[Dict[str, Any]]:
    now = now or utc_now_iso()
    return [
        {
            "id": user_id,
            "name": name,
            "email": email,
            "grade": grade,
            "join_date": now,
            "last_active": now,
            "total_downloads": downloads,
            "is_guest": False,
            "is_blocked": False,
            "admin_notes": notes,
        }
        for user_id, name, email, grade, downloads, notes in _DEFAULT_USERS
    ]


def default_server_files(now: Optional[str] = None) -> List[Dict[str, Any]]:
    now = now or utc_now_iso()
    files = [
        {
            "name": "Prodomo Server",
            "version": "2.1.4",
            "description": "Latest stable release of Prodomo Server with enhanced security features and performance improvements.",
            "file_url": "https://example.com/download/prodomo-server-2.1.4.zip",
            "file_size": 52428800,
            "file_type": "server",
            "min_grade": "V4",
            "status": "active",
            "download_count": 1247,
            "changelog": [
                "Enhanced security protocols",
                "Improved performance by 25%",
                "Fixed memory leak issues",
                "Added new configuration options",
                "Updated dependencies",
            ],
        },
        {
            "name": "Prodomo Server Beta",
            "version": "2.2.0-beta",
            "description": "Beta version with experimental features. Use at your own risk in production environments.",
            "file_url": "https://example.com/download/prodomo-server-2.2.0-beta.zip",
            "file_size": 55574528,
            "file_type": "server",
            "min_grade": "V5",
            "status": "beta",
            "download_count": 89,
            "changelog": [
                "New experimental API endpoints",
                "Advanced caching mechanisms",
                "Improved logging system",
                "Beta WebSocket support",
            ],
        },
        {
            "name": "Security Plugin",
            "version": "1.0.2",
            "description": "Essential security plugin for enhanced server protection and monitoring.",
            "file_url": "https://example.com/download/security-plugin-1.0.2.zip",
            "file_size": 5242880,
            "file_type": "plugin",
            "min_grade": "V4",
            "status": "active",
            "download_count": 456,
            "changelog": [
                "Fixed vulnerability in authentication",
                "Added brute force protection",
                "Improved logging capabilities",
            ],
        },
    ]
    for f in files:
        f.update({"id": new_id(), "created_by": ADMIN_USER_ID, "created_at": now, "updated_at": now})
    return files


def default_patch_notes(now: Optional[str] = None) -> List[Dict[str, Any]]:
    now = now or utc_now_iso()
    return [{
        "id": new_id(),
        "version": "2.1.4",
        "title": "Security and Performance Update",
        "content": PATCH_NOTE_2_1_4,
        "status": "published",
        "author_id": ADMIN_USER_ID,
        "author_name": "Admin User",
        "created_at": now,
        "updated_at": now,
    }]


def initialize_remote_defaults(remote: RemoteStore) -> bool:
    """
    Insert the default users when the remote users table is empty.

    Returns:
        True if the remote store holds users afterwards
    """
    existing = remote.select("users", columns="id", limit=1)
    if not existing.ok:
        logger.error(f"Error checking users table: {existing.error}")
        return False

    if existing.data:
        logger.info("Remote store already has data")
        return True

    inserted = remote.insert("users", default_users())
    if not inserted.ok:
        logger.error(f"Error inserting default users: {inserted.error}")
        return False

    logger.info("Remote store initialized with default users")
    return True


def seed_local_defaults(cache: LocalCache, overwrite: bool = False) -> List[str]:
    """
    Write the default users, files and patch notes into the local cache.

    Collections that already exist are left alone unless overwrite is set.

    Returns:
        Names of the collections that were written
    """
    now = utc_now_iso()
    collections = {
        "users": default_users(now),
        "server_files": default_server_files(now),
        "patch_notes": default_patch_notes(now),
    }

    written = []
    with LogContext(logger, "Seeding local cache"):
        for name, rows in collections.items():
            if cache.exists(name) and not overwrite:
                continue
            try:
                cache.write(name, rows)
                written.append(name)
            except LocalCacheError as e:
                logger.error(f"Failed to seed local {name}: {e}")

    if written:
        logger.info(f"Seeded local cache: {', '.join(written)}")
    return written
