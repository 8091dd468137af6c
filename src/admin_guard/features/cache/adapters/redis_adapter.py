"""Redis permission cache backend.

Entries are stored as ``"1"``/``"0"`` strings with a native ``PX`` expiry,
so Redis itself guarantees no entry outlives its TTL.
"""

import logging
from typing import Any, Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..entities.cache_entry import CacheKey
from ....core.exceptions import CacheError

logger = logging.getLogger(__name__)

_GLOB_SPECIAL = "\\*?[]"


def _escape_glob(value: str) -> str:
    return "".join(f"\\{ch}" if ch in _GLOB_SPECIAL else ch for ch in value)


class RedisPermissionCacheBackend:
    """Distributed permission cache shared by every process of the service."""

    def __init__(self, client: redis.Redis, key_prefix: str = "admin_guard", scan_count: int = 500):
        self._client = client
        self.key_prefix = key_prefix
        self.scan_count = scan_count
        self._hits = 0
        self._misses = 0

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "admin_guard") -> "RedisPermissionCacheBackend":
        return cls(redis.from_url(url, decode_responses=True), key_prefix=key_prefix)

    async def get(self, key: CacheKey) -> Optional[bool]:
        try:
            raw = await self._client.get(key.to_string(self.key_prefix))
        except RedisError as e:
            raise CacheError(f"Failed to read permission cache: {e}") from e

        if raw is None:
            self._misses += 1
            return None
        self._hits += 1
        if isinstance(raw, bytes):
            raw = raw.decode()
        return raw == "1"

    async def set(self, key: CacheKey, value: bool, ttl_ms: int) -> None:
        try:
            await self._client.set(key.to_string(self.key_prefix), "1" if value else "0", px=ttl_ms)
        except RedisError as e:
            raise CacheError(f"Failed to write permission cache: {e}") from e

    async def delete_user(self, user_id: str) -> int:
        return await self._delete_matching(f"{self.key_prefix}:perm:{_escape_glob(user_id)}:*")

    async def clear(self) -> int:
        return await self._delete_matching(f"{self.key_prefix}:perm:*")

    async def size(self) -> int:
        count = 0
        try:
            async for _ in self._client.scan_iter(match=f"{self.key_prefix}:perm:*", count=self.scan_count):
                count += 1
        except RedisError as e:
            raise CacheError(f"Failed to count permission cache keys: {e}") from e
        return count

    async def start(self) -> None:
        try:
            await self._client.ping()
        except RedisError as e:
            raise CacheError(f"Redis is unreachable: {e}") from e
        logger.info("Connected to Redis permission cache")

    async def stop(self) -> None:
        await self._client.aclose()

    def stats(self) -> Dict[str, Any]:
        total = self._hits + self._misses
        return {
            "backend": "redis",
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / total if total else 0.0,
        }

    async def _delete_matching(self, pattern: str) -> int:
        deleted = 0
        batch = []
        try:
            async for key in self._client.scan_iter(match=pattern, count=self.scan_count):
                batch.append(key)
                if len(batch) >= self.scan_count:
                    deleted += await self._client.delete(*batch)
                    batch = []
            if batch:
                deleted += await self._client.delete(*batch)
        except RedisError as e:
            raise CacheError(f"Failed to delete permission cache keys: {e}") from e
        return deleted
