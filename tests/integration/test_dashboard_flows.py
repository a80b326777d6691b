# =============================================================================
# tests/integration/test_dashboard_flows.py
# Integration Tests for DataAccessLayer flows across repositories
# =============================================================================

from unittest.mock import patch

import pytest

from prodomo_core.bootstrap import initialize_remote_defaults, seed_local_defaults
from prodomo_core.models import BugStatus, Grade, PatchNote, PublishStatus, ServerFile
from prodomo_core.repositories import Source


def get_row(rows, row_id):
    return next(r for r in rows if r["id"] == row_id)


class TestOfflineDownload:
    """Test the offline download scenario end to end"""

    def test_offline_download_counts_locally(self, dal, fake_remote, cache):
        # U1 created while online, then the remote goes away
        dal.users.create_user("U1", "u1@prodomo.local", Grade.V4, user_id="u1")
        cache.write("users", [dict(get_row(fake_remote.rows("users"), "u1"))])
        before = get_row(cache.read("users"), "u1")["total_downloads"]
        fake_remote.online = False

        user = dal.users.get("u1")
        file = ServerFile(id="F1", name="Prodomo Server", version="1.0")

        assert dal.record_download(user, file)

        logs = cache.read("download_logs")
        assert len(logs) == 1
        assert logs[0]["user_id"] == "u1"
        assert logs[0]["file_id"] == "F1"
        assert logs[0]["file_version"] == "1.0"
        assert get_row(cache.read("users"), "u1")["total_downloads"] == before + 1

        activity = cache.read("activity_logs")
        assert activity[0]["action"] == "Downloaded file"
        assert activity[0]["details"] == "Prodomo Server v1.0"

    def test_online_download_counts_remotely(self, dal, remote_with_users, cache):
        user = dal.users.get("u2")
        file = ServerFile(id="F1", name="Prodomo Server", version="2.1.4")

        assert dal.record_download(user, file)

        assert get_row(remote_with_users.rows("users"), "u2")["total_downloads"] == 13
        assert len(remote_with_users.rows("download_logs")) == 1
        assert not cache.exists("download_logs")

    def test_download_file_count_untouched(self, dal, remote_with_users):
        remote_with_users.tables["server_files"] = [
            {"id": "F1", "name": "Prodomo Server", "version": "2.1.4", "download_count": 10}
        ]
        dal.record_download(dal.users.get("u1"), dal.server_files.get("F1"))

        assert remote_with_users.rows("server_files")[0]["download_count"] == 10

    def test_record_download_never_raises(self, dal, remote_with_users):
        user = dal.users.get("u1")
        file = ServerFile(id="F1", name="Prodomo Server", version="1.0")

        with patch.object(dal.download_logs, "log_download", side_effect=RuntimeError("boom")):
            assert dal.record_download(user, file) is False


class TestPublishFlow:
    """Test draft -> published with fan-out"""

    @pytest.fixture
    def draft(self, dal, remote_with_users):
        remote_with_users.tables["patch_notes"] = [{
            "id": "p1", "version": "2.2.0", "title": "Beta Features", "status": "draft",
            "author_id": "admin-1", "updated_at": "2024-01-01T00:00:00+00:00",
        }]
        return "p1"

    def test_publish_notifies_every_other_user(self, dal, draft):
        result = dal.publish_patch_note(draft, actor_id="admin-1")

        assert result
        assert result.data.status == PublishStatus.PUBLISHED
        assert result.metadata["notified"] == 3
        assert dal.notifications.get_notifications("admin-1") == []
        assert dal.notifications.unread_count("u1") == 1

    def test_republish_is_noop(self, dal, remote_with_users, draft):
        dal.publish_patch_note(draft, actor_id="admin-1")
        updated_at = remote_with_users.rows("patch_notes")[0]["updated_at"]
        writes = len(remote_with_users.writes("patch_notes"))

        again = dal.publish_patch_note(draft, actor_id="admin-1")

        assert again
        assert again.metadata["already_published"] is True
        assert again.metadata["notified"] == 0
        assert remote_with_users.rows("patch_notes")[0]["updated_at"] == updated_at
        assert len(remote_with_users.writes("patch_notes")) == writes
        assert len(dal.notifications.get_notifications("u1")) == 1

    def test_publish_offline(self, dal, remote_with_users, cache_with_users):
        cache_with_users.write("patch_notes", [{
            "id": "p2", "version": "2.3.0", "title": "Offline", "status": "draft",
        }])
        remote_with_users.online = False

        result = dal.publish_patch_note("p2")

        assert result.source == Source.LOCAL
        assert cache_with_users.read("patch_notes")[0]["status"] == "published"
        # Recipients come from the cached users collection
        assert result.metadata["notified"] == 4

    def test_publish_unknown_note_fails(self, dal, error_state):
        result = dal.publish_patch_note("missing")

        assert not result
        assert error_state.message == "Failed to publish patch note: not found"

    def test_create_published_note_notifies(self, dal, remote_with_users):
        note = PatchNote(id=None, version="3.0", title="Major", status=PublishStatus.PUBLISHED)

        result = dal.create_patch_note(note, actor_id="admin-1")

        assert result.metadata["notified"] == 3

    def test_create_draft_does_not_notify(self, dal, remote_with_users):
        result = dal.create_patch_note({"version": "3.1", "title": "Draft", "status": "draft"})

        assert "notified" not in result.metadata
        assert dal.notifications.get_notifications("u1") == []


class TestFileNotifications:
    """Test file create/update notifications"""

    def test_new_file_notifies_eligible_users(self, dal, remote_with_users):
        result = dal.save_server_file(
            {"name": "Prodomo Server Beta", "version": "2.2.0-beta", "min_grade": "V5"},
            notify_users=True,
        )

        assert result.metadata["notified"] == 3
        assert dal.notifications.get_notifications("u1") == []
        assert dal.notifications.get_notifications("u2")[0].title == "New File Available"

    def test_update_without_flag_is_silent(self, dal, remote_with_users):
        remote_with_users.tables["server_files"] = [{"id": "F1", "name": "Plugin", "version": "1.0"}]

        result = dal.save_server_file({"version": "1.1"}, file_id="F1")

        assert result
        assert "notified" not in result.metadata

    def test_update_with_flag(self, dal, remote_with_users):
        remote_with_users.tables["server_files"] = [
            {"id": "F1", "name": "Security Plugin", "version": "1.0.2", "min_grade": "V4"}
        ]

        dal.save_server_file({"version": "1.0.3"}, file_id="F1", notify_users=True)

        n = dal.notifications.get_notifications("u1")[0]
        assert n.message == "Security Plugin has been updated to v1.0.3"


class TestBugReportFlow:
    """Test comments and status notifications"""

    @pytest.fixture
    def report_id(self, dal, remote_with_users):
        return dal.bug_reports.create_report({"title": "Crash on start", "reporter_id": "u1"}).data.id

    def test_comments_append(self, dal, report_id):
        dal.bug_reports.add_comment(report_id, "Support User", "Can you share logs?", "Support")
        dal.bug_reports.add_comment(report_id, "V4 User", "Attached.")

        comments = dal.bug_reports.get(report_id).comments
        assert [c["content"] for c in comments] == ["Can you share logs?", "Attached."]
        assert comments[0]["author_grade"] == "Support"
        assert "author_grade" not in comments[1]

    def test_status_change_notifies_reporter(self, dal, report_id):
        result = dal.update_bug_status(report_id, BugStatus.RESOLVED)

        assert result
        n = dal.notifications.get_notifications("u1")[0]
        assert n.message == 'Great news! Your bug report "Crash on start" has been resolved.'

    def test_same_status_does_not_notify(self, dal, report_id):
        dal.update_bug_status(report_id, "open")
        assert dal.notifications.get_notifications("u1") == []

    def test_unknown_status_rejected(self, dal, report_id, error_state):
        assert not dal.update_bug_status(report_id, "wontfix")
        assert error_state.message == "Failed to update bug report"

    def test_list_by_reporter(self, dal, report_id):
        assert [r.id for r in dal.bug_reports.list_by_reporter("u1")] == [report_id]


class TestBootstrap:
    """Test default data seeding"""

    def test_remote_defaults_seed_empty_table(self, fake_remote):
        assert initialize_remote_defaults(fake_remote)
        emails = sorted(r["email"] for r in fake_remote.rows("users"))
        assert emails == [
            "admin@prodomo.local", "support@prodomo.local", "v4@prodomo.local", "v5@prodomo.local"
        ]

    def test_remote_defaults_skip_populated_table(self, remote_with_users):
        assert initialize_remote_defaults(remote_with_users)
        assert len(remote_with_users.rows("users")) == 4
        assert remote_with_users.writes("users") == []

    def test_remote_defaults_offline(self, offline_remote):
        assert not initialize_remote_defaults(offline_remote)

    def test_local_seed(self, dal, fake_remote, cache):
        fake_remote.online = False

        assert seed_local_defaults(cache) == ["users", "server_files", "patch_notes"]
        assert seed_local_defaults(cache) == []

        assert len(dal.users.list_all()) == 4
        assert [f.version for f in dal.server_files.list_for_grade("V5")] != []
        assert dal.patch_notes.list_published()[0].title == "Security and Performance Update"


class TestStatus:
    """Test status reporting"""

    def test_status(self, dal, cache):
        cache.write("users", [])
        status = dal.get_status()

        assert status["remote_configured"] is True
        assert status["cache_prefix"] == "prodomo"
        assert "users" in status["cache_collections"]
        assert status["last_error"] is None
