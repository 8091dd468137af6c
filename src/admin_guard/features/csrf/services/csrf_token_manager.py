"""Session-bound CSRF token issuance and validation.

Tokens are ``random.timestamp_ms.signature`` where the signature is an
HMAC-SHA256 over random value, timestamp and session id. Checks run in a
fixed order and return the first failing reason verbatim:

1. ``Invalid token format``
2. ``Session mismatch``
3. ``Token expired``
4. ``Token not found`` (the token was invalidated or swept)
"""

import asyncio
import hashlib
import hmac
import logging
import secrets
import time
from collections import Counter
from typing import Any, Callable, Dict, Optional

from ..entities.csrf_token import (
    CSRFToken,
    CSRFValidationResult,
    INVALID_FORMAT,
    SESSION_MISMATCH,
    TOKEN_EXPIRED,
    TOKEN_NOT_FOUND,
)

logger = logging.getLogger(__name__)


class CSRFTokenManager:
    """Issues and validates anti-forgery tokens. A session may hold many."""

    def __init__(
        self,
        secret: str,
        max_age_seconds: int = 86_400,
        cleanup_interval: float = 3600.0,
        clock: Callable[[], float] = time.time,
    ):
        if not secret:
            raise ValueError("CSRF secret must not be empty")
        self._secret = secret.encode("utf-8")
        self.max_age_ms = max_age_seconds * 1000
        self.cleanup_interval = cleanup_interval
        self._clock = clock

        # random value -> (session id, issued at ms)
        self._tokens: Dict[str, tuple] = {}
        self._lock = asyncio.Lock()
        self._cleanup_task: Optional[asyncio.Task] = None

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _sign(self, random_value: str, issued_at_ms: int, session_id: str) -> str:
        message = f"{random_value}{issued_at_ms}{session_id}".encode("utf-8")
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    async def generate_token(self, session_id: str) -> str:
        if not session_id:
            raise ValueError("session_id must not be empty")
        random_value = secrets.token_hex(32)
        issued_at_ms = self._now_ms()
        token = CSRFToken(random_value, issued_at_ms, self._sign(random_value, issued_at_ms, session_id))
        async with self._lock:
            self._tokens[random_value] = (session_id, issued_at_ms)
        return token.serialize()

    async def validate_token(self, token: str, session_id: str) -> CSRFValidationResult:
        parsed = CSRFToken.parse(token)
        if parsed is None:
            return CSRFValidationResult(False, INVALID_FORMAT)

        expected = self._sign(parsed.random_value, parsed.issued_at_ms, session_id or "")
        if not hmac.compare_digest(expected, parsed.signature):
            return CSRFValidationResult(False, SESSION_MISMATCH)

        if self._now_ms() - parsed.issued_at_ms > self.max_age_ms:
            return CSRFValidationResult(False, TOKEN_EXPIRED)

        async with self._lock:
            stored = self._tokens.get(parsed.random_value)
        if stored is None or stored[0] != session_id:
            return CSRFValidationResult(False, TOKEN_NOT_FOUND)

        return CSRFValidationResult(True)

    async def invalidate_token(self, token: str) -> bool:
        parsed = CSRFToken.parse(token)
        if parsed is None:
            return False
        async with self._lock:
            return self._tokens.pop(parsed.random_value, None) is not None

    async def invalidate_session_tokens(self, session_id: str) -> int:
        async with self._lock:
            doomed = [key for key, (sid, _) in self._tokens.items() if sid == session_id]
            for key in doomed:
                del self._tokens[key]
        if doomed:
            logger.debug(f"Invalidated {len(doomed)} CSRF tokens for session {session_id}")
        return len(doomed)

    async def cleanup_expired(self) -> int:
        cutoff = self._now_ms() - self.max_age_ms
        async with self._lock:
            expired = [key for key, (_, issued) in self._tokens.items() if issued < cutoff]
            for key in expired:
                del self._tokens[key]
        if expired:
            logger.info(f"Cleaned up {len(expired)} expired CSRF tokens")
        return len(expired)

    async def get_stats(self) -> Dict[str, Any]:
        cutoff = self._now_ms() - self.max_age_ms
        async with self._lock:
            entries = list(self._tokens.values())
        return {
            "total_tokens": len(entries),
            "expired_tokens": sum(1 for _, issued in entries if issued < cutoff),
            "tokens_per_session": dict(Counter(sid for sid, _ in entries)),
        }

    async def start(self) -> None:
        if self._cleanup_task is not None and not self._cleanup_task.done():
            return

        async def cleanup_loop():
            while True:
                try:
                    await asyncio.sleep(self.cleanup_interval)
                    await self.cleanup_expired()
                except asyncio.CancelledError:
                    break
                except Exception as e:
                    logger.warning(f"CSRF token cleanup error: {e}")

        self._cleanup_task = asyncio.create_task(cleanup_loop())

    async def stop(self) -> None:
        if self._cleanup_task is None:
            return
        self._cleanup_task.cancel()
        try:
            await self._cleanup_task
        except asyncio.CancelledError:
            pass
        self._cleanup_task = None
