"""Permission entities and protocols."""

from .permission import (
    Permission,
    UserIdentity,
    WILDCARD_RESOURCE,
    MANAGE_ACTION,
    SCOPE_ALL,
    SCOPE_OWN,
)
from .role_table import RolePermissionTable, DEFAULT_ROLE_PERMISSIONS, DEFAULT_ROLE_HIERARCHY
from .protocols import RolePermissionSource

__all__ = [
    "Permission",
    "UserIdentity",
    "WILDCARD_RESOURCE",
    "MANAGE_ACTION",
    "SCOPE_ALL",
    "SCOPE_OWN",
    "RolePermissionTable",
    "DEFAULT_ROLE_PERMISSIONS",
    "DEFAULT_ROLE_HIERARCHY",
    "RolePermissionSource",
]
