# =============================================================================
# content_core/errors/exceptions.py
# Exception Hierarchy for the Dual-Backend Content Store
# =============================================================================
"""
ContentStoreError
├── RemoteError                 remote call failed; the repository falls back
│   ├── RemoteUnavailableError  no credentials, or the server is unreachable
│   └── RemoteNotFoundError     server answered, no row matched
├── StorageUnavailableError     local medium failed; terminal for writes
├── RecordNotFoundError         absent from every store consulted
└── ConfigurationError          invalid settings; not recoverable

Keyword context (``collection=``, ``record_id=``, ``key=``...) is collected
into ``details`` so handlers and logs can show it without parsing
messages.
"""

from typing import Any, Dict, Optional


class ContentStoreError(Exception):
    """
    Base exception for all content store errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "REMOTE_001")
        details: Context such as collection, record id or storage key
        recoverable: Whether the consumer can carry on after reporting it
    """

    default_code = "CS_000"
    recoverable = True

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        **context: Any,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = dict(details or {})
        self.details.update({k: v for k, v in context.items() if v is not None})

    def __str__(self) -> str:
        if not self.details:
            return f"[{self.code}] {self.message}"
        return f"[{self.code}] {self.message} | Details: {self.details}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        return {
            "error_type": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# REMOTE STORE
# =============================================================================

class RemoteError(ContentStoreError):
    """A Supabase call failed (network, auth, timeout, malformed response)."""
    default_code = "REMOTE_001"


class RemoteUnavailableError(RemoteError):
    """Supabase is not configured or cannot be reached."""
    default_code = "REMOTE_002"


class RemoteNotFoundError(RemoteError):
    """Supabase answered, but no row matched the id."""
    default_code = "REMOTE_404"


# =============================================================================
# LOCAL STORE
# =============================================================================

class StorageUnavailableError(ContentStoreError):
    """The local cache medium failed (disk, quota, corrupt or unserializable data)."""
    default_code = "LOCAL_001"


class RecordNotFoundError(ContentStoreError):
    """No store holds a record with the requested id."""
    default_code = "NOT_FOUND"


# =============================================================================
# CONFIGURATION
# =============================================================================

class ConfigurationError(ContentStoreError):
    """A setting has an unusable value."""
    default_code = "CONFIG_001"
    recoverable = False
