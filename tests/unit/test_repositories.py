# =============================================================================
# tests/unit/test_repositories.py
# Unit Tests for the remote-first / local-fallback repository contract
# =============================================================================

import pytest

from prodomo_core.models import FileStatus, Grade, ServerFile
from prodomo_core.repositories import (
    DocumentationRepository,
    ServerFileRepository,
    Source,
    UserRepository,
)


def file_payload(**overrides):
    payload = {
        "name": "Prodomo Server",
        "version": "2.1.4",
        "file_type": "server",
        "min_grade": "V4",
        "status": "active",
        "changelog": ["Fixed memory leak"],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def files_repo(fake_remote, cache, error_state):
    return ServerFileRepository(fake_remote, cache, error_state)


class TestRepositoryCreate:
    """Test create routing"""

    def test_remote_success_leaves_cache_untouched(self, files_repo, fake_remote, cache):
        result = files_repo.create(file_payload())

        assert result
        assert result.source == Source.REMOTE
        assert isinstance(result.data, ServerFile)
        assert len(fake_remote.rows("server_files")) == 1
        assert not cache.exists("server_files")

    def test_remote_failure_writes_to_cache(self, files_repo, fake_remote, cache):
        fake_remote.online = False

        result = files_repo.create(file_payload())

        assert result
        assert result.source == Source.LOCAL
        rows = cache.read("server_files")
        assert len(rows) == 1
        assert rows[0]["id"]
        assert rows[0]["created_at"]
        assert rows[0]["min_grade"] == "V4"
        assert result.data.id == rows[0]["id"]

    def test_local_create_appends(self, files_repo, fake_remote, cache):
        fake_remote.fail_on.add("insert")

        files_repo.create(file_payload(version="1.0"))
        files_repo.create(file_payload(version="2.0"))

        assert [r["version"] for r in cache.read("server_files")] == ["1.0", "2.0"]

    def test_null_generated_columns_not_sent(self, files_repo, fake_remote):
        files_repo.create(file_payload(id=None, created_at=None))

        _, _, rows = fake_remote.writes("server_files")[0]
        assert "id" not in rows[0]
        assert "created_at" not in rows[0]


class TestRepositoryUpdate:
    """Test update routing"""

    def test_remote_update(self, files_repo, fake_remote, cache):
        fake_remote.tables["server_files"] = [{"id": "f1", **file_payload()}]

        result = files_repo.update("f1", {"status": FileStatus.DEPRECATED})

        assert result.source == Source.REMOTE
        assert fake_remote.rows("server_files")[0]["status"] == "deprecated"
        assert fake_remote.rows("server_files")[0]["updated_at"]
        assert not cache.exists("server_files")

    def test_offline_update_patches_cached_row(self, files_repo, fake_remote, cache):
        cache.write("server_files", [
            {"id": "f1", **file_payload(), "updated_at": "2024-01-01T00:00:00+00:00"},
            {"id": "f2", **file_payload(name="Security Plugin")},
        ])
        fake_remote.online = False

        result = files_repo.update("f1", {"description": "Hotfix"})

        assert result
        assert result.source == Source.LOCAL
        rows = {r["id"]: r for r in cache.read("server_files")}
        assert rows["f1"]["description"] == "Hotfix"
        assert rows["f1"]["updated_at"] != "2024-01-01T00:00:00+00:00"
        assert "description" not in rows["f2"]

    def test_offline_update_of_unknown_id_fails(self, files_repo, fake_remote, cache, error_state):
        cache.write("server_files", [{"id": "f1", **file_payload()}])
        fake_remote.online = False

        result = files_repo.update("missing", {"description": "x"})

        assert not result
        assert result.error == "Failed to update server file"
        assert error_state.message == "Failed to update server file"

    def test_success_clears_previous_error(self, files_repo, fake_remote, error_state):
        error_state.set("Failed to update server file")
        fake_remote.tables["server_files"] = [{"id": "f1", **file_payload()}]

        files_repo.update("f1", {"description": "x"})

        assert error_state.message is None


class TestRepositoryDelete:
    """Test delete routing"""

    def test_remote_delete(self, files_repo, fake_remote):
        fake_remote.tables["server_files"] = [{"id": "f1", **file_payload()}]

        result = files_repo.delete("f1")

        assert result.source == Source.REMOTE
        assert fake_remote.rows("server_files") == []

    def test_offline_delete_removes_cached_row(self, files_repo, fake_remote, cache):
        cache.write("server_files", [{"id": "f1", **file_payload()}, {"id": "f2", **file_payload()}])
        fake_remote.online = False

        assert files_repo.delete("f1")
        assert [r["id"] for r in cache.read("server_files")] == ["f2"]

    def test_offline_delete_without_cache_fails(self, files_repo, fake_remote, error_state):
        fake_remote.online = False

        assert not files_repo.delete("f1")
        assert error_state.message == "Failed to delete server file"


class TestRepositoryReads:
    """Test list/get fallback"""

    def test_offline_list_reads_cache_newest_first(self, files_repo, fake_remote, cache):
        cache.write("server_files", [
            {"id": "old", **file_payload(), "created_at": "2024-01-01T00:00:00+00:00"},
            {"id": "new", **file_payload(), "created_at": "2024-03-01T00:00:00+00:00"},
        ])
        fake_remote.online = False

        files = files_repo.list_all()

        assert [f.id for f in files] == ["new", "old"]
        assert files_repo.last_source == Source.LOCAL

    def test_offline_list_without_cache_is_empty(self, files_repo, fake_remote):
        fake_remote.online = False
        assert files_repo.list_all() == []

    def test_empty_remote_files_do_not_fall_back(self, files_repo, cache):
        cache.write("server_files", [{"id": "f1", **file_payload()}])

        assert files_repo.list_all() == []
        assert files_repo.last_source == Source.REMOTE

    def test_empty_remote_users_fall_back(self, fake_remote, cache_with_users):
        repo = UserRepository(fake_remote, cache_with_users)

        users = repo.list_all()

        assert len(users) == 4
        assert repo.last_source == Source.LOCAL

    def test_get_checks_cache_on_remote_miss(self, files_repo, cache):
        cache.write("server_files", [{"id": "f1", **file_payload()}])

        found = files_repo.get("f1")

        assert found.id == "f1"
        assert files_repo.get("missing") is None

    def test_malformed_cached_rows_are_skipped(self, files_repo, fake_remote, cache):
        cache.write("server_files", [{"id": "f1", **file_payload()}, {"id": "broken"}, "junk"])
        fake_remote.online = False

        assert [f.id for f in files_repo.list_all()] == ["f1"]

    def test_list_for_grade(self, files_repo, fake_remote):
        fake_remote.tables["server_files"] = [
            {"id": "f1", **file_payload(min_grade="V4")},
            {"id": "f2", **file_payload(min_grade="V5", status="beta")},
            {"id": "f3", **file_payload(status="deprecated")},
        ]

        assert [f.id for f in files_repo.list_for_grade(Grade.V4)] == ["f1"]
        assert sorted(f.id for f in files_repo.list_for_grade("Admin")) == ["f1", "f2"]


class TestDocumentationRepository:
    """Test documentation ordering and lookups"""

    def test_offline_docs_ordered_by_order_index(self, fake_remote, cache):
        cache.write("documentation", [
            {"id": "d2", "title": "Install", "slug": "install", "order_index": 2,
             "version_type": "v4", "status": "published"},
            {"id": "d1", "title": "Intro", "slug": "intro", "order_index": 1,
             "version_type": "v4", "status": "published"},
            {"id": "d3", "title": "Draft", "slug": "draft", "order_index": 0,
             "version_type": "v4", "status": "draft"},
        ])
        fake_remote.online = False
        repo = DocumentationRepository(fake_remote, cache)

        assert [d.id for d in repo.list_by_version("v4")] == ["d1", "d2"]
        assert repo.get_by_slug("install").id == "d2"

    def test_unknown_version_or_category_returns_empty(self, fake_remote, cache):
        """Unknown filters read as no pages and never hit the remote store"""
        repo = DocumentationRepository(fake_remote, cache)

        assert repo.list_by_version("v6") == []
        assert repo.list_by_version("v4", category="recipes") == []
        assert fake_remote.calls == []
