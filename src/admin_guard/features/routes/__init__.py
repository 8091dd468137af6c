"""Routes feature for admin-guard.

Resolves the permissions an HTTP route requires:
- entities/: RouteRule and the default route table
- services/: RoutePermissionResolver
"""

from .entities import RouteRule, MatchKind, normalize_path, DEFAULT_ROUTE_RULES
from .services import RoutePermissionResolver

__all__ = [
    "RouteRule",
    "MatchKind",
    "normalize_path",
    "DEFAULT_ROUTE_RULES",
    "RoutePermissionResolver",
]
