"""Tests for the permission cache and its backends."""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock
from redis.exceptions import ConnectionError as RedisConnectionError

from admin_guard.core.exceptions import CacheError
from admin_guard.features.cache.adapters.memory_adapter import MemoryPermissionCacheBackend
from admin_guard.features.cache.adapters.redis_adapter import RedisPermissionCacheBackend
from admin_guard.features.cache.entities.cache_entry import CacheKey
from admin_guard.features.cache.services.permission_cache import PermissionCache


class TestCacheKey:
    """Test cases for CacheKey."""

    def test_to_string(self):
        """Test key serialization."""
        assert CacheKey("u1", "products", "read").to_string() == "perm:u1:products:read:*"
        assert CacheKey("u1", "profile", "update", "own").to_string("ag") == "ag:perm:u1:profile:update:own"
        assert CacheKey("u1", "products", "read", None, 3).to_string("ag") == "ag:perm:u1:products:read:*:e3"


class TestMemoryBackend:
    """Test cases for MemoryPermissionCacheBackend."""

    @pytest.mark.asyncio
    async def test_get_set(self, memory_backend):
        """Test basic storage."""
        key = CacheKey("u1", "products", "read")
        assert await memory_backend.get(key) is None
        await memory_backend.set(key, True, 1000)
        assert await memory_backend.get(key) is True

    @pytest.mark.asyncio
    async def test_expired_entry_is_miss_and_removed(self, memory_backend, clock):
        """Test lazy expiry on read."""
        key = CacheKey("u1", "products", "read")
        await memory_backend.set(key, True, 1000)

        clock.advance(1.0)
        assert await memory_backend.get(key) is None
        assert await memory_backend.size() == 0
        assert memory_backend.stats()["expirations"] == 1

    @pytest.mark.asyncio
    async def test_lru_eviction(self, clock):
        """Test size stays bounded and the least recently used entry goes first."""
        backend = MemoryPermissionCacheBackend(max_entries=2, clock=clock)
        a, b, c = (CacheKey("u1", r, "read") for r in ("a", "b", "c"))
        await backend.set(a, True, 10_000)
        await backend.set(b, True, 10_000)
        await backend.get(a)
        await backend.set(c, True, 10_000)

        assert await backend.size() == 2
        assert await backend.get(b) is None
        assert await backend.get(a) is True
        assert backend.stats()["evictions"] == 1

    @pytest.mark.asyncio
    async def test_delete_user(self, memory_backend):
        """Test per-user invalidation leaves other users alone."""
        await memory_backend.set(CacheKey("u1", "products", "read"), True, 10_000)
        await memory_backend.set(CacheKey("u1", "orders", "read"), False, 10_000)
        await memory_backend.set(CacheKey("u2", "products", "read"), True, 10_000)

        assert await memory_backend.delete_user("u1") == 2
        assert await memory_backend.size() == 1
        assert await memory_backend.get(CacheKey("u2", "products", "read")) is True

    @pytest.mark.asyncio
    async def test_cleanup_expired(self, memory_backend, clock):
        """Test the sweep removes only expired entries."""
        await memory_backend.set(CacheKey("u1", "a", "read"), True, 1_000)
        await memory_backend.set(CacheKey("u1", "b", "read"), True, 10_000)
        clock.advance(5)

        assert await memory_backend.cleanup_expired() == 1
        assert await memory_backend.size() == 1

    @pytest.mark.asyncio
    async def test_start_stop(self, memory_backend):
        """Test the sweep task lifecycle."""
        await memory_backend.start()
        assert memory_backend._cleanup_task is not None
        await memory_backend.stop()
        assert memory_backend._cleanup_task is None

    @pytest.mark.asyncio
    async def test_concurrent_sets_same_key(self, memory_backend):
        """Test concurrent writers leave exactly one entry."""
        key = CacheKey("u1", "products", "read")
        await asyncio.gather(*(memory_backend.set(key, i % 2 == 0, 10_000) for i in range(50)))
        assert await memory_backend.size() == 1
        assert await memory_backend.get(key) in (True, False)


class TestPermissionCache:
    """Test cases for PermissionCache."""

    def test_rejects_non_positive_ttl(self, memory_backend):
        """Test TTL validation."""
        with pytest.raises(ValueError):
            PermissionCache(memory_backend, ttl_ms=0)

    @pytest.mark.asyncio
    async def test_get_set_and_stats(self, permission_cache):
        """Test round trip and stats."""
        await permission_cache.set("u1", "products", "read", None, True)
        await permission_cache.set("u1", "profile", "update", "own", False)

        assert await permission_cache.get("u1", "products", "read") is True
        assert await permission_cache.get("u1", "profile", "update", "own") is False
        assert await permission_cache.get("u1", "profile", "update") is None

        stats = await permission_cache.stats()
        assert stats["size"] == 2
        assert stats["ttl"] == 60_000

    @pytest.mark.asyncio
    async def test_entry_never_outlives_ttl(self, permission_cache, clock):
        """Test an entry is gone exactly at its TTL."""
        await permission_cache.set("u1", "products", "read", None, True)
        clock.advance(59.999)
        assert await permission_cache.get("u1", "products", "read") is True
        clock.advance(0.01)
        assert await permission_cache.get("u1", "products", "read") is None

    @pytest.mark.asyncio
    async def test_invalidate_all(self, permission_cache):
        """Test clearing everything."""
        await permission_cache.set("u1", "products", "read", None, True)
        await permission_cache.set("u2", "products", "read", None, True)
        assert await permission_cache.invalidate_all() == 2
        assert (await permission_cache.stats())["size"] == 0

    @pytest.mark.asyncio
    async def test_invalidation_advances_epoch(self, permission_cache):
        """Test decisions computed before an invalidation are not stored."""
        epoch = permission_cache.epoch("u1")
        await permission_cache.invalidate_user("u1")
        assert permission_cache.epoch("u1") > epoch
        assert permission_cache.epoch("u2") == 0

        assert not await permission_cache.set("u1", "products", "read", None, True, epoch)
        assert await permission_cache.get("u1", "products", "read") is None

        assert await permission_cache.set("u1", "products", "read", None, True, permission_cache.epoch("u1"))
        assert await permission_cache.get("u1", "products", "read") is True

    @pytest.mark.asyncio
    async def test_invalidate_all_advances_every_epoch(self, permission_cache):
        epoch = permission_cache.epoch("u2")
        await permission_cache.invalidate_all()
        assert not await permission_cache.set("u2", "products", "read", None, True, epoch)

    @pytest.mark.asyncio
    async def test_backend_read_failure_is_miss(self):
        """Test a failing backend read degrades to a miss."""
        backend = MagicMock()
        backend.get = AsyncMock(side_effect=CacheError("down"))
        backend.set = AsyncMock(side_effect=CacheError("down"))
        cache = PermissionCache(backend, ttl_ms=1000)

        assert await cache.get("u1", "products", "read") is None
        await cache.set("u1", "products", "read", None, True)

    @pytest.mark.asyncio
    async def test_invalidation_failure_is_raised(self):
        """Test a failing invalidation is not hidden."""
        backend = MagicMock()
        backend.delete_user = AsyncMock(side_effect=CacheError("down"))
        cache = PermissionCache(backend, ttl_ms=1000)

        with pytest.raises(CacheError):
            await cache.invalidate_user("u1")


class AsyncKeyIterator:
    """Async iterator standing in for ``scan_iter``."""

    def __init__(self, keys):
        self._keys = list(keys)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._keys:
            raise StopAsyncIteration
        return self._keys.pop(0)


class TestRedisBackend:
    """Test cases for RedisPermissionCacheBackend."""

    @pytest.fixture
    def redis_client(self):
        client = MagicMock()
        client.get = AsyncMock(return_value=None)
        client.set = AsyncMock()
        client.delete = AsyncMock(return_value=2)
        client.ping = AsyncMock()
        client.aclose = AsyncMock()
        return client

    @pytest.fixture
    def backend(self, redis_client):
        return RedisPermissionCacheBackend(redis_client, key_prefix="ag")

    @pytest.mark.asyncio
    async def test_set_uses_native_ttl(self, backend, redis_client):
        """Test entries are written with a millisecond expiry."""
        await backend.set(CacheKey("u1", "products", "read"), True, 300_000)
        redis_client.set.assert_awaited_once_with("ag:perm:u1:products:read:*", "1", px=300_000)

    @pytest.mark.asyncio
    async def test_get_decodes_values(self, backend, redis_client):
        """Test decoding of stored decisions."""
        redis_client.get.return_value = "0"
        assert await backend.get(CacheKey("u1", "products", "read")) is False
        redis_client.get.return_value = b"1"
        assert await backend.get(CacheKey("u1", "products", "read")) is True
        redis_client.get.return_value = None
        assert await backend.get(CacheKey("u1", "products", "read")) is None

    @pytest.mark.asyncio
    async def test_delete_user_scans_prefix(self, backend, redis_client):
        """Test per-user invalidation deletes the user's keys."""
        redis_client.scan_iter = MagicMock(return_value=AsyncKeyIterator(["k1", "k2"]))

        assert await backend.delete_user("u*1") == 2
        redis_client.scan_iter.assert_called_once_with(match="ag:perm:u\\*1:*", count=500)
        redis_client.delete.assert_awaited_once_with("k1", "k2")

    @pytest.mark.asyncio
    async def test_redis_errors_become_cache_errors(self, backend, redis_client):
        """Test Redis failures are wrapped."""
        redis_client.get.side_effect = RedisConnectionError("refused")
        with pytest.raises(CacheError):
            await backend.get(CacheKey("u1", "products", "read"))

    @pytest.mark.asyncio
    async def test_cache_service_over_redis(self, backend, redis_client):
        """Test the service treats a Redis outage as a miss."""
        redis_client.get.side_effect = RedisConnectionError("refused")
        cache = PermissionCache(backend, ttl_ms=1000)
        assert await cache.get("u1", "products", "read") is None
