"""Permission cache backends."""

from .memory_adapter import MemoryPermissionCacheBackend
from .redis_adapter import RedisPermissionCacheBackend

__all__ = [
    "MemoryPermissionCacheBackend",
    "RedisPermissionCacheBackend",
]
