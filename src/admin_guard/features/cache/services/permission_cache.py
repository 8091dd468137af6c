"""Permission decision cache service.

Wraps a ``PermissionCacheBackend`` so the evaluator never knows whether
decisions live in process or in Redis. Read and write failures degrade to a
miss; invalidation failures are raised because a stale grant must not
survive a role change unnoticed.

Every user has an invalidation epoch that ``invalidate_user`` and
``invalidate_all`` advance before touching the backend. Callers capture the
epoch before a miss and pass it back to ``set``; a decision computed under
an older epoch is never stored where later reads would find it.
"""

import logging
from typing import Any, Dict, Optional

from ..entities.cache_entry import CacheKey
from ..entities.protocols import PermissionCacheBackend
from ....core.exceptions import CacheError

logger = logging.getLogger(__name__)


class PermissionCache:
    """TTL-keyed store of prior authorization decisions."""

    def __init__(self, backend: PermissionCacheBackend, ttl_ms: int = 300_000):
        if ttl_ms <= 0:
            raise ValueError("ttl_ms must be positive")
        self._backend = backend
        self.ttl_ms = ttl_ms

        self._epoch_counter = 0
        self._epoch_floor = 0
        self._user_epochs: Dict[str, int] = {}

    @property
    def backend(self) -> PermissionCacheBackend:
        return self._backend

    def epoch(self, user_id: str) -> int:
        """Current invalidation epoch of ``user_id``."""
        return max(self._user_epochs.get(user_id, 0), self._epoch_floor)

    async def get(
        self,
        user_id: str,
        resource: str,
        action: str,
        scope: Optional[str] = None,
        epoch: Optional[int] = None,
    ) -> Optional[bool]:
        """Return the cached decision, or None on miss."""
        if epoch is None:
            epoch = self.epoch(user_id)
        try:
            return await self._backend.get(CacheKey(user_id, resource, action, scope, epoch))
        except CacheError as e:
            logger.warning(f"Permission cache read failed, treating as miss: {e}")
            return None

    async def set(
        self,
        user_id: str,
        resource: str,
        action: str,
        scope: Optional[str],
        result: bool,
        epoch: Optional[int] = None,
    ) -> bool:
        """Store a decision. Returns False when ``epoch`` is outdated and nothing was written."""
        current = self.epoch(user_id)
        if epoch is None:
            epoch = current
        elif epoch != current:
            logger.debug(f"Discarding permission decision for user {user_id} computed before invalidation")
            return False
        try:
            await self._backend.set(CacheKey(user_id, resource, action, scope, epoch), result, self.ttl_ms)
        except CacheError as e:
            logger.warning(f"Permission cache write failed: {e}")
            return False
        return True

    async def invalidate_user(self, user_id: str) -> int:
        self._epoch_counter += 1
        self._user_epochs[user_id] = self._epoch_counter
        try:
            removed = await self._backend.delete_user(user_id)
        except CacheError as e:
            logger.error(f"Failed to invalidate permission cache for user {user_id}: {e}")
            raise
        logger.debug(f"Invalidated {removed} cached permissions for user {user_id}")
        return removed

    async def invalidate_all(self) -> int:
        self._epoch_counter += 1
        self._epoch_floor = self._epoch_counter
        self._user_epochs.clear()
        try:
            removed = await self._backend.clear()
        except CacheError as e:
            logger.error(f"Failed to clear permission cache: {e}")
            raise
        logger.info(f"Cleared permission cache ({removed} entries)")
        return removed

    async def stats(self) -> Dict[str, Any]:
        """Return ``size`` and ``ttl`` (ms) plus backend counters."""
        return {
            "size": await self._backend.size(),
            "ttl": self.ttl_ms,
            **self._backend.stats(),
        }

    async def start(self) -> None:
        await self._backend.start()

    async def stop(self) -> None:
        await self._backend.stop()
