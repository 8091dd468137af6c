"""Background persistence of security events.

The monitor hands events to ``submit_event`` which only enqueues them. A
worker task writes them to the repository; write failures are logged and
counted but never reach the caller.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

from ..entities.protocols import SecurityEventRepository
from ..entities.security_event import SecurityEvent

logger = logging.getLogger(__name__)

_EVENT = "event"
_AUDIT = "audit"


class EventDispatcher:
    """Queue plus worker that writes to a ``SecurityEventRepository``."""

    def __init__(self, repository: Optional[SecurityEventRepository], max_queue_size: int = 1000):
        self._repository = repository
        self._queue: "asyncio.Queue[Tuple[str, Any]]" = asyncio.Queue(maxsize=max_queue_size)
        self._worker: Optional[asyncio.Task] = None
        self._stats = {"submitted": 0, "persisted": 0, "failed": 0, "dropped": 0}

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def submit_event(self, event: SecurityEvent) -> bool:
        return self._submit(_EVENT, event)

    def submit_audit(self, entry: Dict[str, Any]) -> bool:
        return self._submit(_AUDIT, entry)

    async def start(self) -> None:
        if self._repository is None or self.is_running:
            return
        self._worker = asyncio.create_task(self._run())
        logger.info("Security event dispatcher started")

    async def stop(self) -> None:
        """Persist what is queued, then stop the worker."""
        if self._worker is None:
            if not self._queue.empty():
                logger.info(f"Writing {self._queue.qsize()} queued security records without a worker")
                await self.flush()
            return
        await self.flush()
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        logger.info("Security event dispatcher stopped")

    async def flush(self) -> None:
        """Wait until every queued item has been handled."""
        if self.is_running:
            await self._queue.join()
            return
        while not self._queue.empty():
            kind, payload = self._queue.get_nowait()
            try:
                await self._write(kind, payload)
            finally:
                self._queue.task_done()

    def stats(self) -> Dict[str, int]:
        return {**self._stats, "queued": self._queue.qsize()}

    def _submit(self, kind: str, payload: Any) -> bool:
        if self._repository is None:
            return False
        try:
            self._queue.put_nowait((kind, payload))
        except asyncio.QueueFull:
            self._stats["dropped"] += 1
            logger.warning(f"Security event queue full, dropping {kind}")
            return False
        self._stats["submitted"] += 1
        return True

    async def _run(self) -> None:
        while True:
            kind, payload = await self._queue.get()
            try:
                await self._write(kind, payload)
            finally:
                self._queue.task_done()

    async def _write(self, kind: str, payload: Any) -> None:
        try:
            if kind == _EVENT:
                await self._repository.create_security_event(payload)
            else:
                await self._repository.create_audit_entry(payload)
            self._stats["persisted"] += 1
        except Exception as e:
            self._stats["failed"] += 1
            logger.error(f"Failed to persist security {kind}: {e}")
