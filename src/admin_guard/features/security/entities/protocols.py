"""Protocol interfaces for the security feature."""

from abc import abstractmethod
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from .security_event import SecurityEvent, SecurityEventFilter


@runtime_checkable
class SecurityEventRepository(Protocol):
    """Persistence port for security events and audit entries.

    Writes are best-effort from the monitor's point of view.
    """

    @abstractmethod
    async def create_security_event(self, event: SecurityEvent) -> None:
        ...

    @abstractmethod
    async def create_audit_entry(self, entry: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def query_events(self, event_filter: SecurityEventFilter) -> List[SecurityEvent]:
        ...


@runtime_checkable
class RateLimiter(Protocol):
    """Token-bucket accounting owned by a sibling component."""

    @abstractmethod
    async def check(self, key: str) -> Optional[int]:
        """Return None when allowed, otherwise the seconds until retry."""
        ...
