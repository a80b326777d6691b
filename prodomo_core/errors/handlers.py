# =============================================================================
# prodomo_core/errors/handlers.py
# Error Handling Utilities for the Prodomo data layer
# =============================================================================

from __future__ import annotations
import functools
import traceback
from typing import Optional, Callable, TypeVar, Any

from prodomo_core.logging import get_logger
from .exceptions import ProdomoError

logger = get_logger(__name__)

T = TypeVar("T")


def handle_error(
    error: Exception,
    error_state=None,
    log_error: bool = True,
    user_message: Optional[str] = None,
) -> str:
    """
    Centralized error handling function.

    Args:
        error: The exception to handle
        error_state: Shared ErrorState that receives the user-facing message
        log_error: Whether to log the error
        user_message: Custom message to show the user (uses error message if None)

    Returns:
        The message that was recorded for the UI
    """
    if isinstance(error, ProdomoError):
        message = user_message or error.message
        code = error.code
        details = error.details
    else:
        message = user_message or str(error)
        code = "UNKNOWN"
        details = {"traceback": traceback.format_exc()}

    if log_error:
        logger.error(
            f"[{code}] {message}",
            extra={"details": details},
            exc_info=error if code == "UNKNOWN" else None,
        )

    if error_state is not None:
        error_state.set(message)

    return message


def error_boundary(
    default_return: Any = None,
    error_message: Optional[str] = None,
    log: bool = True,
):
    """
    Decorator for best-effort calls that must never fail the primary action.

    Usage:
        @error_boundary(default_return=False, error_message="Activity logging failed")
        def log_file_download(...):
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., Optional[T]]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Optional[T]:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if log:
                    logger.error(
                        f"{error_message or 'Error'} in {func.__name__}: {e}",
                        exc_info=True,
                    )
                return default_return

        return wrapper

    return decorator
