# =============================================================================
# prodomo_core/errors/__init__.py
# Centralized Error Handling
# =============================================================================

from .exceptions import (
    ProdomoError,
    RemoteStoreError,
    LocalCacheError,
    ReferentialIntegrityError,
    ValidationError,
    ConfigurationError,
)

from .handlers import (
    handle_error,
    error_boundary,
)

__all__ = [
    # Exceptions
    "ProdomoError",
    "RemoteStoreError",
    "LocalCacheError",
    "ReferentialIntegrityError",
    "ValidationError",
    "ConfigurationError",
    # Handlers
    "handle_error",
    "error_boundary",
]
