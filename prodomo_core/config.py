# =============================================================================
# prodomo_core/config.py
# Configuration for the Prodomo data layer
# =============================================================================
"""
Configuration is read from Streamlit secrets first, then the environment.

Expected secrets in .streamlit/secrets.toml:
    [supabase]
    url = "https://your-project.supabase.co"
    key = "your-anon-key"

    [prodomo]                 # optional
    storage_prefix = "prodomo"
    cache_path = "local_data/prodomo_cache.db"
    log_level = "INFO"

Missing Supabase credentials are not an error: the remote store is then
treated as unreachable and every operation is served by the local cache.
"""

from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from prodomo_core.errors import ConfigurationError
from prodomo_core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CACHE_PATH = Path(__file__).parent.parent / "local_data" / "prodomo_cache.db"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class CoreConfig:
    """Settings for the remote store, local cache and logging."""
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    storage_prefix: str = "prodomo"
    cache_path: Path = field(default_factory=lambda: DEFAULT_CACHE_PATH)
    log_level: str = "INFO"
    log_to_file: bool = False

    def __post_init__(self):
        if not self.storage_prefix or not str(self.storage_prefix).strip():
            raise ConfigurationError(
                "storage_prefix must be a non-empty string",
                config_key="storage_prefix",
                expected_type="str",
            )
        level = str(self.log_level).upper()
        if level not in VALID_LOG_LEVELS:
            raise ConfigurationError(
                f"Unknown log level: {self.log_level}",
                config_key="log_level",
                expected_type=" | ".join(VALID_LOG_LEVELS),
            )
        self.log_level = level
        self.cache_path = Path(self.cache_path)

    @property
    def has_remote(self) -> bool:
        """True when both Supabase credentials are present."""
        return bool(self.supabase_url and self.supabase_key)

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level)


def _read_secrets() -> Dict[str, Any]:
    """Return Streamlit secrets as a plain dict, or {} when none are configured."""
    try:
        import streamlit as st
        return {section: dict(st.secrets[section]) for section in ("supabase", "prodomo") if section in st.secrets}
    except Exception as e:
        # st.secrets raises when no secrets.toml exists
        logger.debug(f"Streamlit secrets not available: {e}")
        return {}


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def load_config(secrets: Optional[Dict[str, Any]] = None) -> CoreConfig:
    """
    Build a CoreConfig from secrets and environment variables.

    Args:
        secrets: Pre-loaded secrets mapping (defaults to ``st.secrets``)

    Returns:
        CoreConfig instance

    Raises:
        ConfigurationError: If a provided value is invalid
    """
    secrets = _read_secrets() if secrets is None else secrets
    supabase = secrets.get("supabase", {})
    prodomo = secrets.get("prodomo", {})

    config = CoreConfig(
        supabase_url=supabase.get("url") or os.getenv("SUPABASE_URL"),
        supabase_key=supabase.get("key") or os.getenv("SUPABASE_KEY"),
        storage_prefix=prodomo.get("storage_prefix") or os.getenv("PRODOMO_STORAGE_PREFIX", "prodomo"),
        cache_path=prodomo.get("cache_path") or os.getenv("PRODOMO_CACHE_PATH") or DEFAULT_CACHE_PATH,
        log_level=prodomo.get("log_level") or os.getenv("PRODOMO_LOG_LEVEL", "INFO"),
        log_to_file=_as_bool(prodomo.get("log_to_file", os.getenv("PRODOMO_LOG_TO_FILE", False))),
    )

    if not config.has_remote:
        logger.warning("Supabase credentials not found; running on the local cache only")

    return config
