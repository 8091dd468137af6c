"""CSRF feature for admin-guard.

Session-bound, signed, time-limited anti-forgery tokens.
"""

from .entities import (
    CSRFToken,
    CSRFValidationResult,
    INVALID_FORMAT,
    SESSION_MISMATCH,
    TOKEN_EXPIRED,
    TOKEN_NOT_FOUND,
)
from .services import CSRFTokenManager

__all__ = [
    "CSRFToken",
    "CSRFValidationResult",
    "INVALID_FORMAT",
    "SESSION_MISMATCH",
    "TOKEN_EXPIRED",
    "TOKEN_NOT_FOUND",
    "CSRFTokenManager",
]
