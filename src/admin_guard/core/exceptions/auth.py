"""Access-control exceptions for admin-guard."""

from typing import Any, Dict, Optional

from .base import AdminGuardError


class UnauthorizedError(AdminGuardError):
    """Raised when no valid identity is present."""
    default_code = "UNAUTHORIZED"
    default_message = "Authentication required"


class ForbiddenError(AdminGuardError):
    """Raised when the identity lacks the required permission."""
    default_code = "FORBIDDEN"
    default_message = "Insufficient permissions"


class RateLimitedError(AdminGuardError):
    """Raised when the client exceeded its request budget."""
    default_code = "RATE_LIMITED"
    default_message = "Too many requests"

    def __init__(
        self,
        message: Optional[str] = None,
        retry_after: int = 60,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details={"retry_after": retry_after, **(details or {})})
        self.retry_after = retry_after


class IPBlockedError(AdminGuardError):
    """Raised when the client IP is on the block list."""
    default_code = "IP_BLOCKED"
    default_message = "Access from this address is blocked"


class CSRFInvalidError(AdminGuardError):
    """Raised when a state-changing request carries no valid CSRF token."""
    default_code = "CSRF_TOKEN_INVALID"
    default_message = "Invalid CSRF token"

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Invalid CSRF token: {reason}", details={"reason": reason, **(details or {})})
        self.reason = reason
