# =============================================================================
# content_core/services/base_service.py
# Base Service Class with Common Functionality
# =============================================================================

from __future__ import annotations
from abc import ABC
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from content_core.errors import ContentStoreError, handle_error
from content_core.logging import LogContext, get_logger


@dataclass
class ServiceResult:
    """
    Outcome of a consumer-facing content operation.

    ``source`` names the store that answered a read ("remote", "local" or
    "none"); it stays None for writes. A failed result carries the error
    code and context of the ContentStoreError that caused it.
    """
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    source: Optional[str] = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, data: Any = None, source: Optional[str] = None) -> ServiceResult:
        return cls(success=True, data=data, source=source)

    @classmethod
    def fail(cls, error: str, error_code: str = "UNKNOWN") -> ServiceResult:
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def from_error(cls, error: ContentStoreError) -> ServiceResult:
        """Failed result mirroring a content store error."""
        return cls(
            success=False,
            error=error.message,
            error_code=error.code,
            details=dict(error.details),
        )


class BaseService(ABC):
    """
    Abstract base class for consumer-facing services.

    Subclasses run store calls through ``safe_execute`` so that a failure
    becomes one failed ServiceResult plus, when ``notify_user`` is set,
    exactly one Streamlit notification.
    """

    def __init__(self, notify_user: bool = True):
        self.logger = get_logger(self.__class__.__name__)
        self.notify_user = notify_user

    def log_operation(self, operation: str) -> LogContext:
        """
        Create a logging context for an operation.

        Usage:
            with self.log_operation("Publishing post"):
                repository.update("blog_posts", post_id, {"status": "published"})
        """
        return LogContext(self.logger, operation)

    def safe_execute(
        self,
        operation: str,
        func: Callable[..., Any],
        *args,
        user_message: Optional[str] = None,
        **kwargs
    ) -> ServiceResult:
        """
        Run a store call, converting a ContentStoreError into a failed result.

        Args:
            operation: Description of the operation, used in logs
            func: Store call to run
            user_message: Message shown to the user on failure
            *args, **kwargs: Arguments to pass to func

        Returns:
            ServiceResult with success/failure status
        """
        try:
            with self.log_operation(operation):
                result = func(*args, **kwargs)
        except ContentStoreError as e:
            # already logged by LogContext
            handle_error(
                e,
                show_user_message=self.notify_user,
                log_error=False,
                user_message=user_message,
            )
            return ServiceResult.from_error(e)
        return ServiceResult.ok(result)
