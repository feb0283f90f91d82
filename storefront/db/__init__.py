"""Database module."""
from storefront.db.base import (
    Base,
    UUIDMixin,
    TimestampMixin,
    JSONType,
)
from storefront.db.connection import (
    DatabaseManager,
    init_database,
    close_database,
    health_check,
)

__all__ = [
    "Base",
    "UUIDMixin",
    "TimestampMixin",
    "JSONType",
    "DatabaseManager",
    "init_database",
    "close_database",
    "health_check",
]
