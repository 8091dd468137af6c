"""Declarative role to permission table.

Roles and their grants are data. Adding a role or a permission means
changing ``DEFAULT_ROLE_PERMISSIONS`` (or passing another mapping), never
adding a branch in the evaluator.
"""

import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ....config.constants import Role
from ....core.exceptions import ConfigurationError
from .permission import Permission

logger = logging.getLogger(__name__)


DEFAULT_ROLE_PERMISSIONS: Dict[str, List[str]] = {
    Role.ADMIN.value: [
        "*:manage:all",
    ],
    Role.EDITOR.value: [
        "products:manage:all",
        "categories:manage:all",
        "pages:manage:all",
        "media:manage:all",
        "orders:read:all",
        "profile:manage:own",
        "workflow:read:all",
        "search:read:all",
        "notifications:read:own",
    ],
    Role.VIEWER.value: [
        "products:read:all",
        "categories:read:all",
        "pages:read:all",
        "media:read:all",
        "orders:read:all",
        "search:read:all",
        "profile:read:own",
        "notifications:read:own",
    ],
}

DEFAULT_ROLE_HIERARCHY: Dict[str, int] = {
    Role.ADMIN.value: 3,
    Role.EDITOR.value: 2,
    Role.VIEWER.value: 1,
}


class RolePermissionTable:
    """Read-only mapping from role name to its ordered permission grants."""

    def __init__(
        self,
        table: Mapping[str, Iterable[Union[Permission, str]]],
        hierarchy: Optional[Mapping[str, int]] = None,
        admin_role: str = Role.ADMIN.value,
    ):
        roles: Dict[str, Tuple[Permission, ...]] = {}
        for role, grants in table.items():
            roles[role] = tuple(
                grant if isinstance(grant, Permission) else Permission.parse(grant)
                for grant in grants
            )

        if admin_role not in roles:
            raise ConfigurationError(f"Role table is missing the admin role '{admin_role}'")
        if not any(p.is_wildcard for p in roles[admin_role]):
            raise ConfigurationError(f"Admin role '{admin_role}' must include the '*:manage' wildcard")

        self._roles = MappingProxyType(roles)
        self._hierarchy = MappingProxyType(dict(hierarchy or {}))
        self.admin_role = admin_role

    @classmethod
    def default(cls) -> "RolePermissionTable":
        return cls(DEFAULT_ROLE_PERMISSIONS, DEFAULT_ROLE_HIERARCHY)

    def get_permissions(self, role: str) -> Optional[Tuple[Permission, ...]]:
        """Return the grants for ``role`` or None if the role is unknown."""
        return self._roles.get(role)

    def has_role(self, role: str) -> bool:
        return role in self._roles

    @property
    def roles(self) -> List[str]:
        return list(self._roles)

    def level(self, role: str) -> int:
        """Hierarchy level of ``role``; unknown roles rank 0."""
        return self._hierarchy.get(role, 0)

    def roles_granting(self, required: Permission) -> List[str]:
        """List the roles whose grants satisfy ``required``."""
        return [
            role for role, grants in self._roles.items()
            if any(grant.grants(required) for grant in grants)
        ]

    def is_admin_only(self, required: Permission) -> bool:
        """True when no role other than the admin role grants ``required``."""
        return all(role == self.admin_role for role in self.roles_granting(required))

    def with_role(
        self,
        role: str,
        grants: Iterable[Union[Permission, str]],
        level: Optional[int] = None,
    ) -> "RolePermissionTable":
        """Return a new table with ``role`` added or replaced."""
        table: Dict[str, Iterable[Union[Permission, str]]] = dict(self._roles)
        table[role] = list(grants)
        hierarchy = dict(self._hierarchy)
        if level is not None:
            hierarchy[role] = level
        logger.info(f"Role table extended with role '{role}'")
        return RolePermissionTable(table, hierarchy, self.admin_role)

    def to_dict(self) -> Dict[str, List[str]]:
        return {role: [str(p) for p in grants] for role, grants in self._roles.items()}
