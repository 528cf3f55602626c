"""Custom exception classes for ledger operations.

Provides domain-specific exceptions for clear error handling and reporting.
Each carries a machine-readable code and the HTTP status the API maps it to.
The allocation engine never raises; these belong to the services around it.
"""

from typing import Any, Dict

from fastapi import status


class ColivingError(Exception):
    """Base application error."""

    def __init__(self, message: str, code: str = "error", http_status: int = 400):
        """Initialize error."""
        self.message = message
        self.code = code
        self.http_status = http_status
        super().__init__(message)


class ValidationError(ColivingError):
    """Input rejected before it reaches the store or the engine."""

    def __init__(self, message: str):
        super().__init__(message, "validation_error", status.HTTP_400_BAD_REQUEST)


class NotFoundError(ColivingError):
    """Referenced record does not exist."""

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} not found", "not_found", status.HTTP_404_NOT_FOUND)


class PermissionDeniedError(ColivingError):
    """Caller is not allowed to perform the operation on this unit."""

    def __init__(self, message: str = "Not allowed"):
        super().__init__(message, "permission_denied", status.HTTP_403_FORBIDDEN)


class StoreError(ColivingError):
    """Record store operation failed (connection, constraint violation, etc.)."""

    def __init__(self, message: str = "Storage error"):
        super().__init__(message, "store_error", status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_response(error: ColivingError) -> Dict[str, Any]:
    """Create a standardized error response."""
    return {
        "error": {
            "code": error.code,
            "message": error.message,
        }
    }


__all__ = [
    "ColivingError",
    "ValidationError",
    "NotFoundError",
    "PermissionDeniedError",
    "StoreError",
    "error_response",
]
