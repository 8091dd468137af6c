"""Sliding-window failure counters keyed by identity (IP or user id).

Not synchronized on its own: the owning ``SecurityMonitor`` mutates trackers
only while holding its lock, which keeps increments atomic per key.
"""

import time
from collections import deque
from typing import Callable, Deque, Dict


class FailureTracker:
    """Counts events per key inside a sliding time window."""

    def __init__(self, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.window_seconds = window_seconds
        self._clock = clock
        self._events: Dict[str, Deque[float]] = {}

    def record(self, key: str) -> int:
        """Record one event for ``key`` and return the count in the window."""
        now = self._clock()
        events = self._events.setdefault(key, deque())
        events.append(now)
        self._trim(events, now)
        return len(events)

    def count(self, key: str) -> int:
        events = self._events.get(key)
        if not events:
            return 0
        self._trim(events, self._clock())
        if not events:
            del self._events[key]
            return 0
        return len(events)

    def reset(self, key: str) -> None:
        self._events.pop(key, None)

    def prune(self) -> int:
        """Forget keys with no event left in the window; return how many."""
        now = self._clock()
        stale = []
        for key, events in self._events.items():
            self._trim(events, now)
            if not events:
                stale.append(key)
        for key in stale:
            del self._events[key]
        return len(stale)

    def __len__(self) -> int:
        return len(self._events)

    def _trim(self, events: Deque[float], now: float) -> None:
        cutoff = now - self.window_seconds
        while events and events[0] <= cutoff:
            events.popleft()
