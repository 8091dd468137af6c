"""Protocol interfaces for permission cache backends."""

from abc import abstractmethod
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from .cache_entry import CacheKey


@runtime_checkable
class PermissionCacheBackend(Protocol):
    """Storage for permission decisions with per-entry TTL.

    Implementations must never return an entry past its TTL.
    """

    @abstractmethod
    async def get(self, key: CacheKey) -> Optional[bool]:
        """Return the cached decision or None on miss."""
        ...

    @abstractmethod
    async def set(self, key: CacheKey, value: bool, ttl_ms: int) -> None:
        """Store a decision that expires ``ttl_ms`` milliseconds from now."""
        ...

    @abstractmethod
    async def delete_user(self, user_id: str) -> int:
        """Remove every entry of ``user_id``; return the number removed."""
        ...

    @abstractmethod
    async def clear(self) -> int:
        """Remove every entry; return the number removed."""
        ...

    @abstractmethod
    async def size(self) -> int:
        """Number of stored entries."""
        ...

    @abstractmethod
    async def start(self) -> None:
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...

    @abstractmethod
    def stats(self) -> Dict[str, Any]:
        """Backend specific counters."""
        ...
