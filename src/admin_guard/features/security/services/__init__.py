"""Security services."""

from .failure_tracker import FailureTracker
from .event_dispatcher import EventDispatcher
from .security_monitor import SecurityMonitor

__all__ = [
    "FailureTracker",
    "EventDispatcher",
    "SecurityMonitor",
]
