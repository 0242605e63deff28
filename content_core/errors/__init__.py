# =============================================================================
# content_core/errors/__init__.py
# Error Taxonomy and Handling for the Content Store
# =============================================================================

from .exceptions import (
    ContentStoreError,
    RemoteError,
    RemoteUnavailableError,
    RemoteNotFoundError,
    StorageUnavailableError,
    RecordNotFoundError,
    ConfigurationError,
)

from .handlers import (
    handle_error,
    user_message_for,
    safe_execute,
    ErrorContext,
    error_boundary,
)

__all__ = [
    # Exceptions
    "ContentStoreError",
    "RemoteError",
    "RemoteUnavailableError",
    "RemoteNotFoundError",
    "StorageUnavailableError",
    "RecordNotFoundError",
    "ConfigurationError",
    # Handlers
    "handle_error",
    "user_message_for",
    "safe_execute",
    "ErrorContext",
    "error_boundary",
]
