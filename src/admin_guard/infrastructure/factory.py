"""Construction and lifecycle of the admin-guard services.

``create_guard`` builds every service once at process start. The returned
``Guard`` is passed to the middleware; ``start``/``stop`` belong in the
application's startup and shutdown hooks.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

import redis.asyncio as redis

from ..config.settings import GuardSettings, get_settings
from ..features.cache.adapters.memory_adapter import MemoryPermissionCacheBackend
from ..features.cache.adapters.redis_adapter import RedisPermissionCacheBackend
from ..features.cache.services.permission_cache import PermissionCache
from ..features.csrf.services.csrf_token_manager import CSRFTokenManager
from ..features.permissions.entities.role_table import RolePermissionTable
from ..features.permissions.services.permission_evaluator import PermissionEvaluator
from ..features.routes.entities.route_rule import RouteRule
from ..features.routes.services.route_resolver import RoutePermissionResolver
from ..features.security.entities.protocols import SecurityEventRepository
from ..features.security.repositories.security_event_repository import AsyncpgSecurityEventRepository
from ..features.security.services.event_dispatcher import EventDispatcher
from ..features.security.services.security_monitor import SecurityMonitor
from ..services.access_control import AccessControlService

logger = logging.getLogger(__name__)


@dataclass
class Guard:
    """Process-wide set of admin-guard services."""

    settings: GuardSettings
    role_table: RolePermissionTable
    cache: PermissionCache
    evaluator: PermissionEvaluator
    resolver: RoutePermissionResolver
    monitor: SecurityMonitor
    csrf: CSRFTokenManager
    access_control: AccessControlService
    repository: Optional[SecurityEventRepository] = None

    async def start(self) -> None:
        await self.cache.start()
        await self.monitor.start(self.settings.monitor_cleanup_interval_seconds)
        await self.csrf.start()
        logger.info(f"admin-guard started (cache backend: {self.settings.cache_backend})")

    async def stop(self) -> None:
        await self.csrf.stop()
        await self.monitor.stop()
        await self.cache.stop()
        if isinstance(self.repository, AsyncpgSecurityEventRepository):
            await self.repository.close()
        logger.info("admin-guard stopped")


def build_cache(settings: GuardSettings, redis_client: Optional[redis.Redis] = None) -> PermissionCache:
    """Build the permission cache selected by ``settings.cache_backend``."""
    if settings.use_distributed_cache:
        if redis_client is not None:
            backend = RedisPermissionCacheBackend(redis_client, key_prefix=settings.redis_key_prefix)
        else:
            backend = RedisPermissionCacheBackend.from_url(settings.redis_url, key_prefix=settings.redis_key_prefix)
    else:
        backend = MemoryPermissionCacheBackend(
            max_entries=settings.cache_max_entries,
            cleanup_interval=settings.cache_cleanup_interval_seconds,
        )
    return PermissionCache(backend, ttl_ms=settings.cache_ttl_ms)


async def create_guard(
    settings: Optional[GuardSettings] = None,
    repository: Optional[SecurityEventRepository] = None,
    role_table: Optional[RolePermissionTable] = None,
    route_rules: Optional[Iterable[RouteRule]] = None,
    redis_client: Optional[redis.Redis] = None,
) -> Guard:
    """Build every service. Connects to PostgreSQL when a DSN is configured."""
    settings = settings or get_settings()
    role_table = role_table or RolePermissionTable.default()

    if repository is None and settings.database_dsn:
        repository = await AsyncpgSecurityEventRepository.connect(
            settings.database_dsn, schema=settings.database_schema
        )

    cache = build_cache(settings, redis_client)
    evaluator = PermissionEvaluator(role_table, cache)
    resolver = RoutePermissionResolver(route_rules)
    monitor = SecurityMonitor(
        settings,
        dispatcher=EventDispatcher(repository, max_queue_size=settings.event_queue_size),
    )
    csrf = CSRFTokenManager(
        settings.csrf_secret,
        max_age_seconds=settings.csrf_max_age_seconds,
        cleanup_interval=settings.csrf_cleanup_interval_seconds,
    )
    access_control = AccessControlService(
        resolver, evaluator, monitor, role_table, log_granted_access=settings.log_granted_access
    )

    return Guard(
        settings=settings,
        role_table=role_table,
        cache=cache,
        evaluator=evaluator,
        resolver=resolver,
        monitor=monitor,
        csrf=csrf,
        access_control=access_control,
        repository=repository,
    )
