"""HTTP status code mapping for exceptions."""

from typing import Dict, Type

from .auth import (
    UnauthorizedError,
    ForbiddenError,
    RateLimitedError,
    IPBlockedError,
    CSRFInvalidError,
)
from .infrastructure import InternalError


HTTP_STATUS_MAP: Dict[Type[Exception], int] = {
    # 401 Unauthorized
    UnauthorizedError: 401,

    # 403 Forbidden
    ForbiddenError: 403,
    IPBlockedError: 403,
    CSRFInvalidError: 403,

    # 429 Too Many Requests
    RateLimitedError: 429,

    # 500 Internal Server Error
    InternalError: 500,
}


def get_http_status_code(exception: Exception) -> int:
    """Get HTTP status code for exception, walking its class hierarchy."""
    for exc_type in type(exception).__mro__:
        if exc_type in HTTP_STATUS_MAP:
            return HTTP_STATUS_MAP[exc_type]
    return 500
