# =============================================================================
# tests/unit/test_config.py
# Unit Tests for configuration, errors and the shared error state
# =============================================================================

import logging
from pathlib import Path

import pytest

from prodomo_core.config import CoreConfig, DEFAULT_CACHE_PATH, load_config
from prodomo_core.errors import (
    ConfigurationError,
    LocalCacheError,
    RemoteStoreError,
    error_boundary,
    handle_error,
)
from prodomo_core.state import ErrorState, SessionErrorState


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("SUPABASE_URL", "SUPABASE_KEY", "PRODOMO_STORAGE_PREFIX",
                 "PRODOMO_CACHE_PATH", "PRODOMO_LOG_LEVEL", "PRODOMO_LOG_TO_FILE"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestLoadConfig:
    """Test secrets / environment resolution"""

    def test_defaults_without_credentials(self, clean_env):
        config = load_config(secrets={})

        assert not config.has_remote
        assert config.storage_prefix == "prodomo"
        assert config.cache_path == DEFAULT_CACHE_PATH
        assert config.log_level_value == logging.INFO

    def test_secrets_take_precedence(self, clean_env):
        clean_env.setenv("SUPABASE_URL", "https://env.supabase.co")
        config = load_config(secrets={
            "supabase": {"url": "https://secret.supabase.co", "key": "anon"},
            "prodomo": {"storage_prefix": "demo", "log_level": "debug"},
        })

        assert config.has_remote
        assert config.supabase_url == "https://secret.supabase.co"
        assert config.storage_prefix == "demo"
        assert config.log_level == "DEBUG"

    def test_environment_fallback(self, clean_env, tmp_path):
        clean_env.setenv("SUPABASE_URL", "https://env.supabase.co")
        clean_env.setenv("SUPABASE_KEY", "anon")
        clean_env.setenv("PRODOMO_CACHE_PATH", str(tmp_path / "c.db"))
        clean_env.setenv("PRODOMO_LOG_TO_FILE", "true")

        config = load_config(secrets={})

        assert config.has_remote
        assert config.cache_path == Path(tmp_path / "c.db")
        assert config.log_to_file is True

    def test_invalid_log_level(self, clean_env):
        with pytest.raises(ConfigurationError) as exc:
            CoreConfig(log_level="LOUD")
        assert exc.value.code == "CONFIG_001"
        assert not exc.value.recoverable

    def test_empty_prefix(self):
        with pytest.raises(ConfigurationError):
            CoreConfig(storage_prefix=" ")


class TestErrors:
    """Test the exception hierarchy and handlers"""

    def test_remote_error_details(self):
        error = RemoteStoreError("timeout", table="users", operation="select")
        assert error.to_dict() == {
            "error_type": "RemoteStoreError",
            "code": "STORE_001",
            "message": "timeout",
            "details": {"table": "users", "operation": "select"},
            "recoverable": True,
        }

    def test_handle_error_sets_state(self):
        state = ErrorState()
        message = handle_error(LocalCacheError("disk full", key="prodomo_users"), error_state=state,
                               user_message="Failed to create user")

        assert message == "Failed to create user"
        assert state.message == "Failed to create user"

    def test_error_boundary_returns_default(self):
        @error_boundary(default_return=False, error_message="Logging failed")
        def explode():
            raise RuntimeError("boom")

        assert explode() is False

    def test_session_error_state(self, mock_streamlit):
        state = SessionErrorState()
        state.set("Failed to update user")

        assert mock_streamlit.session_state["db_error"] == "Failed to update user"
        assert state.message == "Failed to update user"

        state.clear()
        assert state.message is None
