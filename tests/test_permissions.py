"""Tests for permission entities, the role table and the evaluator."""

import asyncio

import pytest
from unittest.mock import MagicMock

from admin_guard.core.exceptions import ConfigurationError, InternalError
from admin_guard.features.cache.services.permission_cache import PermissionCache
from admin_guard.features.permissions.entities.permission import Permission, UserIdentity
from admin_guard.features.permissions.entities.role_table import RolePermissionTable
from admin_guard.features.permissions.services.permission_evaluator import PermissionEvaluator


SAMPLE_PERMISSIONS = [
    Permission("products", "read"),
    Permission("products", "create", "all"),
    Permission("products", "delete"),
    Permission("users", "manage", "all"),
    Permission("system", "manage"),
    Permission("profile", "update", "own"),
    Permission("audit", "read", "all"),
    Permission("anything", "export", "team"),
]


class YieldingBackend:
    """Dict backend that suspends on every call, like a network cache."""

    def __init__(self):
        self.store = {}
        self.write_started = asyncio.Event()
        self.release_writes = asyncio.Event()
        self.release_writes.set()

    async def get(self, key):
        await asyncio.sleep(0)
        return self.store.get(key)

    async def set(self, key, value, ttl_ms):
        self.write_started.set()
        await self.release_writes.wait()
        self.store[key] = value

    async def delete_user(self, user_id):
        await asyncio.sleep(0)
        doomed = [key for key in self.store if key.user_id == user_id]
        for key in doomed:
            del self.store[key]
        return len(doomed)


class TestPermission:
    """Test cases for Permission."""

    def test_parse_with_scope(self):
        """Test parsing resource:action:scope."""
        p = Permission.parse("products:update:own")
        assert p == Permission("products", "update", "own")
        assert str(p) == "products:update:own"

    def test_parse_without_scope(self):
        """Test parsing resource:action."""
        p = Permission.parse("products:read")
        assert p.scope is None
        assert str(p) == "products:read"

    def test_invalid_format(self):
        """Test invalid permission strings are rejected."""
        with pytest.raises(ValueError, match="format"):
            Permission.parse("products")
        with pytest.raises(ValueError, match="non-empty"):
            Permission("", "read")

    def test_wildcard_grants_everything(self):
        """Test *:manage satisfies any requirement."""
        wildcard = Permission("*", "manage")
        assert wildcard.is_wildcard
        for required in SAMPLE_PERMISSIONS:
            assert wildcard.grants(required)

    def test_manage_implies_every_action(self):
        """Test manage on a resource grants all its actions."""
        grant = Permission("products", "manage", "all")
        assert grant.grants(Permission("products", "delete"))
        assert grant.grants(Permission("products", "update", "all"))
        assert not grant.grants(Permission("orders", "read"))

    def test_scope_compatibility(self):
        """Test scope rules."""
        own = Permission("profile", "update", "own")
        assert own.grants(Permission("profile", "update"))
        assert own.grants(Permission("profile", "update", "own"))
        assert not own.grants(Permission("profile", "update", "all"))

        all_scope = Permission("orders", "read", "all")
        assert all_scope.grants(Permission("orders", "read", "own"))
        assert all_scope.grants(Permission("orders", "read", "team"))

        team = Permission("orders", "read", "team")
        assert team.grants(Permission("orders", "read", "team"))
        assert not team.grants(Permission("orders", "read", "own"))

        unscoped = Permission("orders", "read")
        assert not unscoped.grants(Permission("orders", "read", "own"))

    def test_action_mismatch(self):
        """Test a different action is not granted."""
        assert not Permission("products", "read", "all").grants(Permission("products", "update"))


class TestRolePermissionTable:
    """Test cases for RolePermissionTable."""

    def test_default_roles(self, role_table):
        """Test the default table contents."""
        assert set(role_table.roles) == {"ADMIN", "EDITOR", "VIEWER"}
        assert role_table.get_permissions("ADMIN") == (Permission("*", "manage", "all"),)
        assert role_table.get_permissions("UNKNOWN") is None

    def test_admin_requires_wildcard(self):
        """Test the admin role must include the wildcard."""
        with pytest.raises(ConfigurationError):
            RolePermissionTable({"ADMIN": ["products:manage:all"]})
        with pytest.raises(ConfigurationError):
            RolePermissionTable({"EDITOR": ["products:manage:all"]})

    def test_hierarchy_levels(self, role_table):
        """Test hierarchy ranks."""
        assert role_table.level("ADMIN") > role_table.level("EDITOR") > role_table.level("VIEWER")
        assert role_table.level("GUEST") == 0

    def test_with_role_adds_data_only(self, role_table):
        """Test adding a role is a data change."""
        extended = role_table.with_role("AUDITOR", ["audit:read:all"], level=1)
        assert extended.has_role("AUDITOR")
        assert not role_table.has_role("AUDITOR")
        assert extended.get_permissions("AUDITOR") == (Permission("audit", "read", "all"),)

    def test_admin_only_permissions(self, role_table):
        """Test detection of permissions only the admin role grants."""
        assert role_table.is_admin_only(Permission("system", "manage"))
        assert role_table.is_admin_only(Permission("admin", "read"))
        assert not role_table.is_admin_only(Permission("products", "update"))
        assert role_table.roles_granting(Permission("orders", "read")) == ["ADMIN", "EDITOR", "VIEWER"]


class TestPermissionEvaluator:
    """Test cases for PermissionEvaluator."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("required", SAMPLE_PERMISSIONS, ids=str)
    async def test_admin_has_every_permission(self, evaluator, admin_user, required):
        """Test admin is granted every permission."""
        assert await evaluator.has_permission(admin_user, required) is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "required",
        [p for p in SAMPLE_PERMISSIONS if p.action != "read"]
        + [Permission("orders", "update"), Permission("profile", "manage", "own")],
        ids=str,
    )
    async def test_viewer_denied_non_read_actions(self, evaluator, viewer_user, required):
        """Test viewer is denied every non-read action."""
        assert await evaluator.has_permission(viewer_user, required) is False

    @pytest.mark.asyncio
    async def test_viewer_reads(self, evaluator, viewer_user):
        """Test viewer read access."""
        assert await evaluator.has_permission(viewer_user, Permission("products", "read"))
        assert await evaluator.has_permission(viewer_user, Permission("profile", "read", "own"))
        assert not await evaluator.has_permission(viewer_user, Permission("users", "read"))

    @pytest.mark.asyncio
    async def test_editor_permissions(self, evaluator, editor_user):
        """Test editor content management."""
        assert await evaluator.has_permission(editor_user, Permission("products", "update"))
        assert await evaluator.has_permission(editor_user, Permission("profile", "update", "own"))
        assert not await evaluator.has_permission(editor_user, Permission("profile", "update", "all"))
        assert not await evaluator.has_permission(editor_user, Permission("orders", "delete"))
        assert not await evaluator.has_permission(editor_user, Permission("system", "manage"))

    @pytest.mark.asyncio
    async def test_second_call_uses_cache(self, evaluator, editor_user):
        """Test the first call populates the cache and the second skips evaluation."""
        required = Permission("products", "update")

        first = await evaluator.has_permission(editor_user, required)
        assert evaluator.evaluations == 1

        second = await evaluator.has_permission(editor_user, required)
        assert second == first
        assert evaluator.evaluations == 1

    @pytest.mark.asyncio
    async def test_denials_are_cached(self, evaluator, viewer_user, permission_cache):
        """Test negative decisions are cached too."""
        required = Permission("products", "delete")
        assert not await evaluator.has_permission(viewer_user, required)
        assert await permission_cache.get(viewer_user.id, "products", "delete", None) is False

    @pytest.mark.asyncio
    async def test_invalidate_forces_reevaluation(self, evaluator, editor_user):
        """Test invalidation makes the next call re-evaluate."""
        required = Permission("products", "update")
        await evaluator.has_permission(editor_user, required)
        await evaluator.invalidate_user_cache(editor_user.id)

        await evaluator.has_permission(editor_user, required)
        assert evaluator.evaluations == 2

    @pytest.mark.asyncio
    async def test_role_change_after_invalidation(self, evaluator, permission_cache):
        """Test a demoted user loses access once the cache is invalidated."""
        required = Permission("products", "update")
        assert await evaluator.has_permission(UserIdentity("u1", "EDITOR"), required)

        await evaluator.invalidate_user_cache("u1")
        assert not await evaluator.has_permission(UserIdentity("u1", "VIEWER"), required)

    @pytest.mark.asyncio
    async def test_invalidation_during_lookup_is_not_undone(self, role_table):
        """Test a check started before invalidation does not cache its old grant."""
        evaluator = PermissionEvaluator(role_table, PermissionCache(YieldingBackend(), ttl_ms=60_000))
        required = Permission("users", "delete")

        in_flight = asyncio.create_task(evaluator.has_permission(UserIdentity("u1", "ADMIN"), required))
        await asyncio.sleep(0)
        await evaluator.invalidate_user_cache("u1")

        assert await in_flight is True
        assert not await evaluator.has_permission(UserIdentity("u1", "VIEWER"), required)

    @pytest.mark.asyncio
    async def test_invalidation_during_write_is_not_undone(self, role_table):
        """Test a grant written while invalidation runs is never read back."""
        backend = YieldingBackend()
        evaluator = PermissionEvaluator(role_table, PermissionCache(backend, ttl_ms=60_000))
        required = Permission("users", "delete")

        backend.release_writes.clear()
        in_flight = asyncio.create_task(evaluator.has_permission(UserIdentity("u1", "ADMIN"), required))
        await backend.write_started.wait()
        await evaluator.invalidate_user_cache("u1")
        backend.release_writes.set()
        assert await in_flight is True

        assert not await evaluator.has_permission(UserIdentity("u1", "VIEWER"), required)
        assert evaluator.evaluations == 2

    @pytest.mark.asyncio
    async def test_ttl_expiry_reevaluates(self, evaluator, editor_user, clock):
        """Test an expired decision is recomputed."""
        required = Permission("products", "read")
        await evaluator.has_permission(editor_user, required)
        clock.advance(61)
        await evaluator.has_permission(editor_user, required)
        assert evaluator.evaluations == 2

    @pytest.mark.asyncio
    async def test_missing_or_inactive_user_fails_closed(self, evaluator, permission_cache):
        """Test None and inactive users are denied without caching."""
        assert await evaluator.has_permission(None, Permission("products", "read")) is False

        inactive = UserIdentity("u2", "ADMIN", is_active=False)
        assert await evaluator.has_permission(inactive, Permission("products", "read")) is False
        assert (await permission_cache.stats())["size"] == 0

    @pytest.mark.asyncio
    async def test_unknown_role_fails_closed(self, evaluator, permission_cache):
        """Test unknown roles are denied without caching."""
        assert not await evaluator.has_permission(UserIdentity("u3", "GUEST"), Permission("products", "read"))
        assert (await permission_cache.stats())["size"] == 0
        assert evaluator.evaluations == 0

    @pytest.mark.asyncio
    async def test_role_lookup_error_propagates(self, permission_cache, editor_user):
        """Test a failing role lookup raises instead of granting."""
        source = MagicMock()
        source.get_permissions.side_effect = RuntimeError("role store down")
        evaluator = PermissionEvaluator(source, permission_cache)

        with pytest.raises(InternalError) as exc_info:
            await evaluator.has_permission(editor_user, Permission("products", "read"))

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert (await permission_cache.stats())["size"] == 0

    @pytest.mark.asyncio
    async def test_has_any_and_all(self, evaluator, editor_user):
        """Test any-of and all-of checks."""
        read = Permission("orders", "read")
        delete = Permission("orders", "delete")
        assert await evaluator.has_any_permission(editor_user, [delete, read])
        assert not await evaluator.has_all_permissions(editor_user, [delete, read])
        assert await evaluator.has_all_permissions(editor_user, [read])
        assert not await evaluator.has_any_permission(editor_user, [])

    @pytest.mark.asyncio
    async def test_filter_by_permissions(self, evaluator, editor_user):
        """Test bulk filtering of items by resource."""
        items = [
            {"id": 1, "kind": "products"},
            {"id": 2, "kind": "users"},
            {"id": 3, "kind": "pages"},
            {"id": 4, "kind": "products"},
        ]
        allowed = await evaluator.filter_by_permissions(editor_user, items, lambda i: i["kind"], "update")
        assert [i["id"] for i in allowed] == [1, 3, 4]

    @pytest.mark.asyncio
    async def test_warm_cache(self, evaluator, viewer_user, permission_cache):
        """Test warming pre-computes decisions."""
        granted = await evaluator.warm_cache(
            viewer_user, [Permission("products", "read"), Permission("products", "update")]
        )
        assert granted == 1
        assert (await permission_cache.stats())["size"] == 2

    def test_role_helpers(self, evaluator, admin_user, editor_user, viewer_user):
        """Test hierarchy helpers."""
        assert evaluator.is_admin(admin_user)
        assert not evaluator.is_admin(editor_user)
        assert evaluator.is_editor(admin_user)
        assert evaluator.is_editor(editor_user)
        assert not evaluator.is_editor(viewer_user)
        assert evaluator.is_viewer(viewer_user)
        assert not evaluator.is_viewer(None)
