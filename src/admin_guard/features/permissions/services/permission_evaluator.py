"""Resource/action/scope permission evaluation.

Decisions are cached per ``(user, resource, action, scope)``. Evaluation
fails closed: a missing or inactive user and an unknown role are denied
without caching, and a failing role lookup is raised as ``InternalError``
so the caller denies and logs it.
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional, TypeVar

from ..entities.permission import Permission, UserIdentity
from ..entities.protocols import RolePermissionSource
from ...cache.services.permission_cache import PermissionCache
from ....config.constants import Role
from ....core.exceptions import InternalError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PermissionEvaluator:
    """RBAC engine over a role permission table and a decision cache."""

    def __init__(self, role_source: RolePermissionSource, cache: PermissionCache):
        self._roles = role_source
        self._cache = cache
        # Number of role-table evaluations, i.e. cache misses that were computed
        self.evaluations = 0

    async def has_permission(self, user: Optional[UserIdentity], required: Permission) -> bool:
        """Check whether ``user`` holds ``required``."""
        if user is None or not user.is_active:
            return False

        # Decisions computed across an invalidation are not cached
        epoch = self._cache.epoch(user.id)
        cached = await self._cache.get(user.id, required.resource, required.action, required.scope, epoch)
        if cached is not None:
            return cached

        grants = self._lookup_role(user)
        if grants is None:
            logger.warning(f"Unknown role '{user.role}' for user {user.id}, denying {required}")
            return False

        self.evaluations += 1
        result = any(grant.grants(required) for grant in grants)

        await self._cache.set(user.id, required.resource, required.action, required.scope, result, epoch)
        if not result:
            logger.debug(f"Permission {required} denied for user {user.id} ({user.role})")
        return result

    async def has_any_permission(self, user: Optional[UserIdentity], required: Iterable[Permission]) -> bool:
        """True if ``user`` holds at least one of ``required``."""
        for permission in required:
            if await self.has_permission(user, permission):
                return True
        return False

    async def has_all_permissions(self, user: Optional[UserIdentity], required: Iterable[Permission]) -> bool:
        """True if ``user`` holds every permission in ``required``."""
        for permission in required:
            if not await self.has_permission(user, permission):
                return False
        return True

    async def filter_by_permissions(
        self,
        user: Optional[UserIdentity],
        items: Iterable[T],
        resource_of: Callable[[T], str],
        action: str,
        scope: Optional[str] = None,
    ) -> List[T]:
        """Keep the items whose resource ``user`` may apply ``action`` to."""
        decisions: Dict[str, bool] = {}
        allowed = []
        for item in items:
            resource = resource_of(item)
            if resource not in decisions:
                decisions[resource] = await self.has_permission(user, Permission(resource, action, scope))
            if decisions[resource]:
                allowed.append(item)
        return allowed

    async def warm_cache(self, user: UserIdentity, permissions: Iterable[Permission]) -> int:
        """Pre-compute decisions for ``permissions``; return how many were granted."""
        granted = 0
        for permission in permissions:
            if await self.has_permission(user, permission):
                granted += 1
        return granted

    async def invalidate_user_cache(self, user_id: str) -> int:
        """Drop cached decisions of ``user_id``. Call after every role change."""
        return await self._cache.invalidate_user(user_id)

    def has_role_level(self, user: Optional[UserIdentity], role: str) -> bool:
        """True if the user's role ranks at or above ``role`` in the hierarchy."""
        if user is None or not user.is_active:
            return False
        required_level = self._roles.level(role)
        return required_level > 0 and self._roles.level(user.role) >= required_level

    def is_admin(self, user: Optional[UserIdentity]) -> bool:
        return user is not None and user.is_active and user.role == Role.ADMIN.value

    def is_editor(self, user: Optional[UserIdentity]) -> bool:
        return self.has_role_level(user, Role.EDITOR.value)

    def is_viewer(self, user: Optional[UserIdentity]) -> bool:
        return self.has_role_level(user, Role.VIEWER.value)

    def _lookup_role(self, user: UserIdentity):
        try:
            return self._roles.get_permissions(user.role)
        except Exception as e:
            logger.error(f"Role lookup failed for user {user.id} ({user.role}): {e}")
            raise InternalError(
                f"Role lookup failed for role '{user.role}'",
                details={"user_id": user.id, "role": user.role},
            ) from e
