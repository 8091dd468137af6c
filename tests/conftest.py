"""Pytest configuration and fixtures for admin-guard tests."""

import pytest
from unittest.mock import AsyncMock

from admin_guard.config.settings import GuardSettings
from admin_guard.features.cache.adapters.memory_adapter import MemoryPermissionCacheBackend
from admin_guard.features.cache.services.permission_cache import PermissionCache
from admin_guard.features.csrf.services.csrf_token_manager import CSRFTokenManager
from admin_guard.features.permissions.entities.permission import UserIdentity
from admin_guard.features.permissions.entities.role_table import RolePermissionTable
from admin_guard.features.permissions.services.permission_evaluator import PermissionEvaluator
from admin_guard.features.routes.services.route_resolver import RoutePermissionResolver
from admin_guard.features.security.services.event_dispatcher import EventDispatcher
from admin_guard.features.security.services.security_monitor import SecurityMonitor
from admin_guard.services.access_control import AccessControlService


class FakeClock:
    """Manually advanced clock for TTL and window tests."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Controllable clock."""
    return FakeClock()


@pytest.fixture
def settings():
    """Settings with defaults, isolated from the environment file."""
    return GuardSettings(_env_file=None, csrf_secret="test-secret")


@pytest.fixture
def role_table():
    """Default role permission table."""
    return RolePermissionTable.default()


@pytest.fixture
def memory_backend(clock):
    """In-process cache backend driven by the fake clock."""
    return MemoryPermissionCacheBackend(max_entries=100, cleanup_interval=60.0, clock=clock)


@pytest.fixture
def permission_cache(memory_backend):
    """Permission cache with a one minute TTL."""
    return PermissionCache(memory_backend, ttl_ms=60_000)


@pytest.fixture
def evaluator(role_table, permission_cache):
    """Permission evaluator over the default role table."""
    return PermissionEvaluator(role_table, permission_cache)


@pytest.fixture
def resolver():
    """Route resolver over the default route table."""
    return RoutePermissionResolver()


@pytest.fixture
def mock_event_repository():
    """Mock security event repository for testing."""
    repo = AsyncMock()
    repo.create_security_event = AsyncMock()
    repo.create_audit_entry = AsyncMock()
    repo.query_events = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def dispatcher(mock_event_repository):
    """Event dispatcher writing to the mock repository."""
    return EventDispatcher(mock_event_repository)


@pytest.fixture
def monitor(settings, dispatcher, clock):
    """Security monitor with default thresholds."""
    return SecurityMonitor(settings, dispatcher=dispatcher, clock=clock)


@pytest.fixture
def csrf_manager(clock):
    """CSRF manager with a one hour token lifetime."""
    return CSRFTokenManager("test-secret", max_age_seconds=3600, clock=clock)


@pytest.fixture
def access_control(resolver, evaluator, monitor, role_table):
    """Access control service over the default tables."""
    return AccessControlService(resolver, evaluator, monitor, role_table)


@pytest.fixture
def admin_user():
    return UserIdentity(id="user-admin", role="ADMIN")


@pytest.fixture
def editor_user():
    return UserIdentity(id="user-editor", role="EDITOR")


@pytest.fixture
def viewer_user():
    return UserIdentity(id="user-viewer", role="VIEWER")
