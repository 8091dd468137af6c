"""Route services."""

from .route_resolver import RoutePermissionResolver

__all__ = ["RoutePermissionResolver"]
