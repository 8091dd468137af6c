"""Tests for route access decisions."""

import pytest
from unittest.mock import AsyncMock

from admin_guard.core.exceptions import (
    ForbiddenError,
    InternalError,
    IPBlockedError,
    UnauthorizedError,
)
from admin_guard.features.cache.adapters.memory_adapter import MemoryPermissionCacheBackend
from admin_guard.features.cache.services.permission_cache import PermissionCache
from admin_guard.features.permissions.entities.permission import Permission, UserIdentity
from admin_guard.features.permissions.services.permission_evaluator import PermissionEvaluator
from admin_guard.services.access_control import AccessControlService, RequestContext


IP = "198.51.100.20"


class FailingRoleSource:
    """Role source whose backing store is unavailable."""

    def get_permissions(self, role):
        raise RuntimeError("role store unavailable")

    def level(self, role):
        return 0


class TestAccessControlService:
    """Test cases for AccessControlService."""

    @pytest.mark.asyncio
    async def test_public_route(self, access_control):
        """Test public routes need no user."""
        decision = await access_control.can_user_access_route(None, "/api/health")
        assert decision.allowed
        assert decision.is_public
        assert decision.reason == "public"

    @pytest.mark.asyncio
    async def test_unauthenticated(self, access_control, monitor):
        """Test protected routes reject anonymous requests."""
        context = RequestContext(path="/admin/products", ip_address=IP)
        decision = await access_control.can_user_access_route(None, "/admin/products", context=context)

        assert not decision.allowed
        assert decision.reason == "unauthenticated"
        assert isinstance(decision.error, UnauthorizedError)

        events = await monitor.get_security_events(event_type="unauthorized_access")
        assert len(events) == 1
        assert events[0].ip_address == IP

    @pytest.mark.asyncio
    async def test_inactive_user(self, access_control):
        user = UserIdentity(id="u-off", role="ADMIN", is_active=False)
        decision = await access_control.can_user_access_route(user, "/admin")
        assert isinstance(decision.error, UnauthorizedError)

    @pytest.mark.asyncio
    async def test_granted(self, access_control, editor_user):
        """Test an editor may edit products."""
        decision = await access_control.can_user_access_route(editor_user, "/admin/products/42/edit")
        assert decision.allowed
        assert decision.reason == "granted"
        assert decision.required_permissions == (Permission("products", "update"),)

    @pytest.mark.asyncio
    async def test_forbidden(self, access_control, viewer_user, monitor):
        """Test a viewer may not create products."""
        decision = await access_control.can_user_access_route(viewer_user, "/api/products", "POST")

        assert not decision.allowed
        assert decision.reason == "forbidden"
        assert isinstance(decision.error, ForbiddenError)

        denied = await monitor.get_security_events(event_type="permission_denied")
        assert denied[0].user_id == "user-viewer"
        assert denied[0].details["required"] == ["products:create"]

    @pytest.mark.asyncio
    async def test_auth_only_route(self, access_control, viewer_user):
        """Test routes with no permissions only need a user."""
        decision = await access_control.can_user_access_route(viewer_user, "/api/auth/me")
        assert decision.allowed
        assert decision.reason == "authenticated"

    @pytest.mark.asyncio
    async def test_blocked_ip(self, access_control, monitor, admin_user):
        """Test a blocked IP is rejected even on public routes."""
        await monitor.block_ip(IP, "manual")
        context = RequestContext(path="/api/health", ip_address=IP)

        decision = await access_control.can_user_access_route(admin_user, "/api/health", context=context)
        assert not decision.allowed
        assert decision.reason == "ip_blocked"
        assert isinstance(decision.error, IPBlockedError)

    @pytest.mark.asyncio
    async def test_privilege_escalation_alert(self, access_control, editor_user, monitor):
        """Test an editor reaching for admin-only routes raises a critical alert."""
        await access_control.can_user_access_route(editor_user, "/admin/backup")

        alerts = await monitor.get_security_events(event_type="privilege_escalation")
        assert len(alerts) == 1
        assert alerts[0].severity.value == "critical"
        assert alerts[0].user_id == "user-editor"

    @pytest.mark.asyncio
    async def test_admin_on_admin_route_is_not_escalation(self, access_control, admin_user, monitor):
        decision = await access_control.can_user_access_route(admin_user, "/admin/backup")
        assert decision.allowed
        assert await monitor.get_security_events(event_type="privilege_escalation") == []

    @pytest.mark.asyncio
    async def test_sensitive_access_alert(self, access_control, viewer_user, monitor):
        """Test authenticated access to auth-only routes is flagged."""
        await access_control.can_user_access_route(viewer_user, "/api/auth/me")
        alerts = await monitor.get_security_events(event_type="sensitive_access")
        assert len(alerts) == 1
        assert alerts[0].severity.value == "medium"

    @pytest.mark.asyncio
    async def test_granted_access_logging(self, resolver, evaluator, monitor, role_table, admin_user):
        """Test granted access is recorded only when enabled."""
        quiet = AccessControlService(resolver, evaluator, monitor, role_table)
        await quiet.can_user_access_route(admin_user, "/admin/products")
        assert await monitor.get_security_events(event_type="access_granted") == []

        verbose = AccessControlService(resolver, evaluator, monitor, role_table, log_granted_access=True)
        await verbose.can_user_access_route(admin_user, "/admin/products")
        assert len(await monitor.get_security_events(event_type="access_granted")) == 1

    @pytest.mark.asyncio
    async def test_fails_closed_on_internal_error(self, resolver, monitor, role_table, admin_user, clock):
        """Test a broken role store denies access."""
        cache = PermissionCache(MemoryPermissionCacheBackend(clock=clock), ttl_ms=60_000)
        evaluator = PermissionEvaluator(FailingRoleSource(), cache)
        service = AccessControlService(resolver, evaluator, monitor, role_table)

        decision = await service.can_user_access_route(admin_user, "/admin/products")
        assert not decision.allowed
        assert decision.reason == "error"
        assert isinstance(decision.error, InternalError)
        assert isinstance(decision.error.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_monitor_failure_does_not_change_decision(self, resolver, evaluator, role_table, viewer_user):
        """Test reporting errors are logged and ignored."""
        monitor = AsyncMock()
        monitor.is_ip_blocked.return_value = False
        monitor.observe.side_effect = RuntimeError("monitor down")
        monitor.log_security_event.side_effect = RuntimeError("monitor down")
        service = AccessControlService(resolver, evaluator, monitor, role_table)

        decision = await service.can_user_access_route(viewer_user, "/api/products", "POST")
        assert decision.reason == "forbidden"

    @pytest.mark.asyncio
    async def test_has_permission(self, access_control, editor_user):
        assert await access_control.has_permission(editor_user, Permission("products", "update"))
        assert not await access_control.has_permission(editor_user, Permission("users", "read"))
