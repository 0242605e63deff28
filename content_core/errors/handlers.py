# =============================================================================
# content_core/errors/handlers.py
# Error Handling Utilities for Content Consumers
# =============================================================================

from __future__ import annotations
import functools
from typing import Any, Callable, Dict, Optional, TypeVar
import streamlit as st

from content_core.logging import get_logger
from .exceptions import ContentStoreError

logger = get_logger(__name__)

T = TypeVar("T")

# Fallback wording per error code when the caller gives no message
DEFAULT_USER_MESSAGES: Dict[str, str] = {
    "REMOTE_001": "The content server did not respond",
    "REMOTE_002": "The content server is not configured",
    "REMOTE_404": "The record no longer exists on the server",
    "LOCAL_001": "Content could not be saved on this device",
    "NOT_FOUND": "The record could not be found",
    "CONFIG_001": "The content store is misconfigured",
}

# Codes that only mean "degraded". The repository never lets these out, so
# only pages calling RemoteStoreClient directly (e.g. realtime) hit them.
WARNING_CODES = ("REMOTE_001", "REMOTE_002", "REMOTE_404")


def user_message_for(error: Exception, user_message: Optional[str] = None) -> str:
    """Text shown to the user for ``error``."""
    if user_message:
        return user_message
    if isinstance(error, ContentStoreError):
        return DEFAULT_USER_MESSAGES.get(error.code, error.message)
    return "Something went wrong"


def handle_error(
    error: Exception,
    show_user_message: bool = True,
    log_error: bool = True,
    user_message: Optional[str] = None,
) -> str:
    """
    Log an error and notify the user once.

    Remote failures are shown as warnings, local and not-found failures
    as errors, configuration problems as critical. Repository calls
    never raise remote failures; those come from RemoteStoreClient and
    RealtimeBridge.subscribe used directly.

    Args:
        error: The exception to handle
        show_user_message: Whether to notify the user through Streamlit
        log_error: Whether to log the error
        user_message: Custom message to show the user

    Returns:
        The message shown (or that would have been shown)
    """
    message = user_message_for(error, user_message)
    code = getattr(error, "code", "UNKNOWN")
    details = getattr(error, "details", {})

    if log_error:
        logger.error(f"[{code}] {error}", extra={"details": details}, exc_info=error)

    if not show_user_message:
        return message

    if code in WARNING_CODES:
        st.warning(f"{message}. Working from the local copy.")
    elif getattr(error, "recoverable", True):
        st.error(f"Error: {message}")
    else:
        st.error(f"Critical Error: {message}. Please contact support.")

    if details and st.session_state.get("debug_mode", False):
        with st.expander("Error Details", expanded=False):
            st.json(details)

    return message


def safe_execute(
    func: Callable[..., T],
    *args,
    default: Optional[T] = None,
    error_message: Optional[str] = None,
    reraise: bool = False,
    **kwargs,
) -> Optional[T]:
    """
    Call ``func`` and turn a content store failure into ``default``.

    Only ContentStoreError is handled; anything else is a bug and
    propagates.

    Usage:
        post = safe_execute(
            repository.create, "blog_posts", payload,
            error_message="Could not save the post",
        )
    """
    try:
        return func(*args, **kwargs)
    except ContentStoreError as e:
        handle_error(e, user_message=error_message)
        if reraise:
            raise
        return default


class ErrorContext:
    """
    Wrap a block of content operations with logging and one notification.

    Recoverable content store errors are reported and suppressed;
    non-recoverable ones are reported and re-raised. Other exceptions
    pass through untouched.

    Usage:
        with ErrorContext("Deleting course", show_success=True):
            repository.delete("courses", course_id)
    """

    def __init__(
        self,
        operation: str,
        show_success: bool = False,
        success_message: Optional[str] = None,
    ):
        self.operation = operation
        self.show_success = show_success
        self.success_message = success_message
        self.error: Optional[ContentStoreError] = None

    def __enter__(self) -> ErrorContext:
        logger.debug(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is None:
            logger.debug(f"Completed: {self.operation}")
            if self.show_success:
                st.success(self.success_message or f"{self.operation} completed")
            return False

        if not isinstance(exc_val, ContentStoreError):
            return False

        self.error = exc_val
        handle_error(exc_val, user_message=f"{self.operation} failed")
        return exc_val.recoverable

    @property
    def failed(self) -> bool:
        return self.error is not None


def error_boundary(
    default_return: Any = None,
    error_message: Optional[str] = None,
):
    """
    Decorator for page sections that render content.

    A ContentStoreError is logged, shown once as ``error_message`` (or
    the default wording for its code) and replaced by ``default_return``.

    Usage:
        @error_boundary(default_return=[], error_message="Could not load events")
        def load_events() -> List[dict]:
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., Optional[T]]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Optional[T]:
            try:
                return func(*args, **kwargs)
            except ContentStoreError as e:
                logger.error(f"{func.__name__} failed: [{e.code}] {e.message}")
                handle_error(e, log_error=False, user_message=error_message)
                return default_return

        return wrapper

    return decorator
