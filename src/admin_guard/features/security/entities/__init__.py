"""Security entities and protocols."""

from .security_event import (
    SecurityEvent,
    IPBlockEntry,
    AlertConfig,
    SecurityEventFilter,
)
from .protocols import SecurityEventRepository, RateLimiter

__all__ = [
    "SecurityEvent",
    "IPBlockEntry",
    "AlertConfig",
    "SecurityEventFilter",
    "SecurityEventRepository",
    "RateLimiter",
]
