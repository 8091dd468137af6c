"""Permission cache entities and protocols."""

from .cache_entry import CacheKey, CacheEntry
from .protocols import PermissionCacheBackend

__all__ = [
    "CacheKey",
    "CacheEntry",
    "PermissionCacheBackend",
]
