"""Permissions feature for admin-guard.

Feature-First architecture for role-based access control:
- entities/: Permission and identity value objects, the role table, protocols
- services/: the PermissionEvaluator decision engine
"""

from .entities import (
    Permission,
    UserIdentity,
    RolePermissionTable,
    RolePermissionSource,
    DEFAULT_ROLE_PERMISSIONS,
    DEFAULT_ROLE_HIERARCHY,
)
from .services import PermissionEvaluator

__all__ = [
    # Entities
    "Permission",
    "UserIdentity",
    "RolePermissionTable",
    "DEFAULT_ROLE_PERMISSIONS",
    "DEFAULT_ROLE_HIERARCHY",

    # Protocols
    "RolePermissionSource",

    # Services
    "PermissionEvaluator",
]
