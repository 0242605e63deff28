# =============================================================================
# content_core/services/__init__.py
# Consumer-facing Service Layer
# =============================================================================

from .base_service import BaseService, ServiceResult
from .content_service import ContentService, get_content_service

__all__ = [
    "BaseService",
    "ServiceResult",
    "ContentService",
    "get_content_service",
]
