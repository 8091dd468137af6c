"""Permission cache entries and key construction."""

import time
from dataclasses import dataclass
from typing import NamedTuple, Optional


class CacheKey(NamedTuple):
    """Identity of a cached decision.

    ``epoch`` is the user's invalidation epoch when the decision was
    computed; a write carrying an outdated epoch lands on a key no reader
    looks up.
    """
    user_id: str
    resource: str
    action: str
    scope: Optional[str] = None
    epoch: int = 0

    def to_string(self, prefix: str = "") -> str:
        """Serialize as ``[prefix:]perm:user:resource:action:scope[:eN]``."""
        key = f"perm:{self.user_id}:{self.resource}:{self.action}:{self.scope or '*'}"
        if self.epoch:
            key = f"{key}:e{self.epoch}"
        return f"{prefix}:{key}" if prefix else key


@dataclass
class CacheEntry:
    """Cached permission decision with absolute expiry."""
    value: bool
    expires_at: float

    def is_expired(self, now: Optional[float] = None) -> bool:
        """Entries are expired at and after ``expires_at``."""
        if now is None:
            now = time.monotonic()
        return now >= self.expires_at
