"""Exceptions for admin-guard."""

from .base import AdminGuardError, create_error_response, get_http_status_code
from .auth import (
    UnauthorizedError,
    ForbiddenError,
    RateLimitedError,
    IPBlockedError,
    CSRFInvalidError,
)
from .infrastructure import (
    InternalError,
    ConfigurationError,
    CacheError,
    PersistenceError,
)

__all__ = [
    # Base
    "AdminGuardError",
    "create_error_response",
    "get_http_status_code",

    # Access control
    "UnauthorizedError",
    "ForbiddenError",
    "RateLimitedError",
    "IPBlockedError",
    "CSRFInvalidError",

    # Infrastructure
    "InternalError",
    "ConfigurationError",
    "CacheError",
    "PersistenceError",
]
