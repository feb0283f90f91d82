"""
Utilities
=========

Logging setup and the application error taxonomy.
"""

from storefront.utils.errors import (
    ConflictError,
    DatabaseError,
    NotFoundError,
    StorefrontError,
    UpstreamError,
    ValidationError,
)
from storefront.utils.logger import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
)

__all__ = [
    "StorefrontError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "UpstreamError",
    "DatabaseError",
    "bind_request_context",
    "clear_request_context",
    "configure_logging",
    "get_logger",
]
