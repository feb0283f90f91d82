"""
Custom Exception Classes
========================

Application-specific exceptions. Each class carries a stable ``kind``
string and the HTTP status the API layer responds with.
"""

from typing import Any


class StorefrontError(Exception):
    """Base exception for the storefront service."""

    kind: str = "internal"
    status_code: int = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Structured form used in API error bodies and batch results."""
        return {
            "error": self.kind,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(StorefrontError):
    """Raised when a product, variant, cart item or order does not exist."""

    kind = "not_found"
    status_code = 404


class ValidationError(StorefrontError):
    """Raised when input is malformed or violates a business rule."""

    kind = "validation_failure"
    status_code = 400


class ConflictError(StorefrontError):
    """Raised when a uniqueness rule or state transition conflicts."""

    kind = "conflict"
    status_code = 409


class UpstreamError(StorefrontError):
    """Raised when a collaborator (database, payment gateway) fails."""

    kind = "upstream"
    status_code = 502


class DatabaseError(UpstreamError):
    """Raised when database operations fail."""

    pass
