"""CSRF entities."""

from .csrf_token import (
    CSRFToken,
    CSRFValidationResult,
    INVALID_FORMAT,
    SESSION_MISMATCH,
    TOKEN_EXPIRED,
    TOKEN_NOT_FOUND,
)

__all__ = [
    "CSRFToken",
    "CSRFValidationResult",
    "INVALID_FORMAT",
    "SESSION_MISMATCH",
    "TOKEN_EXPIRED",
    "TOKEN_NOT_FOUND",
]
