"""Permission cache services."""

from .permission_cache import PermissionCache

__all__ = ["PermissionCache"]
