"""Permission cache feature for admin-guard.

Feature-First architecture for caching authorization decisions:
- entities/: cache keys, entries and the backend protocol
- adapters/: in-process and Redis backends
- services/: the backend-agnostic PermissionCache
"""

from .entities import CacheKey, CacheEntry, PermissionCacheBackend
from .adapters import MemoryPermissionCacheBackend, RedisPermissionCacheBackend
from .services import PermissionCache

__all__ = [
    # Entities
    "CacheKey",
    "CacheEntry",
    "PermissionCacheBackend",

    # Adapters
    "MemoryPermissionCacheBackend",
    "RedisPermissionCacheBackend",

    # Services
    "PermissionCache",
]
