"""Base exceptions for admin-guard.

All exceptions inherit from AdminGuardError and carry a stable error code,
structured details and the time they were raised, so API callers always
receive the same error envelope.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class AdminGuardError(Exception):
    """Base exception for all admin-guard errors."""

    default_code: str = "INTERNAL_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        message = message or self.default_message
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)


def get_http_status_code(exception: Exception) -> int:
    """Get HTTP status code for exception.

    Args:
        exception: The exception instance

    Returns:
        HTTP status code
    """
    from .http_mapping import get_http_status_code as lookup_status_code
    return lookup_status_code(exception)


def create_error_response(exception: AdminGuardError) -> Dict[str, Any]:
    """Create standardized error response from exception.

    Args:
        exception: The admin-guard exception

    Returns:
        Error response dictionary
    """
    return {
        "error": {
            "code": exception.error_code,
            "message": exception.message,
            "details": exception.details,
            "timestamp": exception.timestamp.isoformat(),
        },
        "success": False,
    }
