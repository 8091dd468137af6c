"""Route rule entities and the default route table."""

from .route_rule import RouteRule, MatchKind, HTTP_METHODS, normalize_path
from .route_table import DEFAULT_ROUTE_RULES, PUBLIC_ROUTE_RULES, PAGE_ROUTE_RULES, API_ROUTE_RULES

__all__ = [
    "RouteRule",
    "MatchKind",
    "HTTP_METHODS",
    "normalize_path",
    "DEFAULT_ROUTE_RULES",
    "PUBLIC_ROUTE_RULES",
    "PAGE_ROUTE_RULES",
    "API_ROUTE_RULES",
]
