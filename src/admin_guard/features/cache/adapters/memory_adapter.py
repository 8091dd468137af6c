"""In-process permission cache backend.

Decisions live in an ``OrderedDict`` kept in LRU order and bounded by
``max_entries``. Expired entries are dropped when read and by a periodic
sweep task started with ``start()``.
"""

import asyncio
import logging
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional, Set

from ..entities.cache_entry import CacheEntry, CacheKey

logger = logging.getLogger(__name__)


class MemoryPermissionCacheBackend:
    """LRU permission cache with lazy and periodic expiry."""

    def __init__(
        self,
        max_entries: int = 10_000,
        cleanup_interval: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_entries = max_entries
        self.cleanup_interval = cleanup_interval
        self._clock = clock

        self._store: "OrderedDict[CacheKey, CacheEntry]" = OrderedDict()
        self._user_index: Dict[str, Set[CacheKey]] = {}
        self._lock = asyncio.Lock()
        self._cleanup_task: Optional[asyncio.Task] = None

        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    async def get(self, key: CacheKey) -> Optional[bool]:
        async with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                return None

            if entry.is_expired(self._clock()):
                self._remove(key)
                self._expirations += 1
                self._misses += 1
                return None

            self._store.move_to_end(key)
            self._hits += 1
            return entry.value

    async def set(self, key: CacheKey, value: bool, ttl_ms: int) -> None:
        expires_at = self._clock() + ttl_ms / 1000.0
        async with self._lock:
            if key in self._store:
                self._store.move_to_end(key)
            self._store[key] = CacheEntry(value=value, expires_at=expires_at)
            self._user_index.setdefault(key.user_id, set()).add(key)
            self._evict_if_needed()

    async def delete_user(self, user_id: str) -> int:
        async with self._lock:
            keys = self._user_index.pop(user_id, set())
            for key in keys:
                self._store.pop(key, None)
            return len(keys)

    async def clear(self) -> int:
        async with self._lock:
            count = len(self._store)
            self._store.clear()
            self._user_index.clear()
            return count

    async def size(self) -> int:
        async with self._lock:
            return len(self._store)

    async def cleanup_expired(self) -> int:
        """Drop every expired entry; return the number removed."""
        async with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._store.items() if entry.is_expired(now)]
            for key in expired:
                self._remove(key)
            self._expirations += len(expired)

        if expired:
            logger.debug(f"Removed {len(expired)} expired permission cache entries")
        return len(expired)

    async def start(self) -> None:
        """Start the periodic expiry sweep."""
        if self._cleanup_task is not None and not self._cleanup_task.done():
            return

        async def cleanup_loop():
            while True:
                try:
                    await asyncio.sleep(self.cleanup_interval)
                    await self.cleanup_expired()
                except asyncio.CancelledError:
                    break
                except Exception as e:
                    logger.warning(f"Permission cache cleanup error: {e}")

        self._cleanup_task = asyncio.create_task(cleanup_loop())

    async def stop(self) -> None:
        """Stop the sweep task."""
        if self._cleanup_task is None:
            return
        self._cleanup_task.cancel()
        try:
            await self._cleanup_task
        except asyncio.CancelledError:
            pass
        self._cleanup_task = None

    def stats(self) -> Dict[str, Any]:
        total = self._hits + self._misses
        return {
            "backend": "memory",
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / total if total else 0.0,
            "evictions": self._evictions,
            "expirations": self._expirations,
            "max_entries": self.max_entries,
        }

    def _remove(self, key: CacheKey) -> None:
        self._store.pop(key, None)
        user_keys = self._user_index.get(key.user_id)
        if user_keys is not None:
            user_keys.discard(key)
            if not user_keys:
                del self._user_index[key.user_id]

    def _evict_if_needed(self) -> None:
        while len(self._store) > self.max_entries:
            oldest = next(iter(self._store))
            self._remove(oldest)
            self._evictions += 1
