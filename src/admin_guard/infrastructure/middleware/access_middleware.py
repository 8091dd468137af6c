"""Access-control middleware for FastAPI applications.

Runs, in order: IP block list, optional rate limiter, route access decision
and, for state-changing requests, CSRF validation. The authenticated
identity is read from ``request.state.user`` and the session id from
``request.state.session_id``; both are set by the authentication layer.

API paths (``/api/...``) get a JSON error envelope. Web paths are redirected
to the login page with the denial reason when authentication or permission
is missing.
"""

import ipaddress
import logging
from typing import Iterable, Optional
from urllib.parse import urlencode
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, RedirectResponse, Response

from ...config.constants import STATE_CHANGING_METHODS, UNKNOWN_IP, SecurityEventType, Severity
from ...core.exceptions import (
    AdminGuardError,
    CSRFInvalidError,
    ForbiddenError,
    RateLimitedError,
    UnauthorizedError,
    create_error_response,
    get_http_status_code,
)
from ...features.security.entities.protocols import RateLimiter
from ...services.access_control import RequestContext
from ..factory import Guard

logger = logging.getLogger(__name__)

CSRF_HEADER = "x-csrf-token"
CSRF_COOKIE = "csrf-token"


def get_client_ip(request: Request, trusted_proxies: Iterable[str] = ()) -> str:
    """Get the real client IP, accounting for proxies.

    Forwarding headers are only read when the direct peer is one of
    ``trusted_proxies``. ``X-Forwarded-For`` is walked from the right, so the
    result is the first address not appended by a trusted proxy.
    """
    trusted = set(trusted_proxies)
    peer = request.client.host if request.client and request.client.host else None

    if peer is None or peer not in trusted:
        return peer or UNKNOWN_IP

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        for ip in reversed([part.strip() for part in forwarded_for.split(",")]):
            try:
                ipaddress.ip_address(ip)
            except ValueError:
                continue
            if ip not in trusted:
                return ip

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        try:
            ipaddress.ip_address(real_ip)
            return real_ip
        except ValueError:
            pass

    return peer


class AccessControlMiddleware(BaseHTTPMiddleware):
    """Enforces admin-guard decisions on every request."""

    def __init__(
        self,
        app,
        guard: Guard,
        rate_limiter: Optional[RateLimiter] = None,
        trusted_proxies: Optional[Iterable[str]] = None,
        csrf_exempt_paths: Optional[Iterable[str]] = None,
    ):
        super().__init__(app)
        self.guard = guard
        self.rate_limiter = rate_limiter
        self.trusted_proxies = tuple(trusted_proxies or ())
        self.csrf_exempt_paths = frozenset(csrf_exempt_paths or ())

    async def dispatch(self, request: Request, call_next) -> Response:
        context = RequestContext(
            path=request.url.path,
            method=request.method.upper(),
            ip_address=get_client_ip(request, self.trusted_proxies),
            user_agent=request.headers.get("User-Agent"),
        )

        error = await self._check_rate_limit(context)
        if error is None:
            user = getattr(request.state, "user", None)
            decision = await self.guard.access_control.can_user_access_route(
                user, context.path, context.method, context
            )
            if not decision.allowed:
                error = decision.error
            elif not decision.is_public and self._requires_csrf(context):
                error = await self._check_csrf(request, context, user)

        if error is not None:
            return self._deny(request, context, error)

        response = await call_next(request)
        self._add_security_headers(response)
        return response

    async def _check_rate_limit(self, context: RequestContext) -> Optional[AdminGuardError]:
        if self.rate_limiter is None:
            return None
        retry_after = await self.rate_limiter.check(context.ip_address)
        if retry_after is None:
            return None
        await self.guard.monitor.log_security_event(
            SecurityEventType.RATE_LIMIT_EXCEEDED, Severity.LOW,
            f"Rate limit exceeded on {context.method} {context.path}",
            context.ip_address,
            details={"path": context.path, "method": context.method, "retry_after": retry_after},
            user_agent=context.user_agent,
        )
        return RateLimitedError(retry_after=retry_after)

    def _requires_csrf(self, context: RequestContext) -> bool:
        return context.method in STATE_CHANGING_METHODS and context.path not in self.csrf_exempt_paths

    async def _check_csrf(self, request: Request, context: RequestContext, user) -> Optional[AdminGuardError]:
        token = request.headers.get(CSRF_HEADER) or request.cookies.get(CSRF_COOKIE)
        session_id = getattr(request.state, "session_id", None)

        if not token:
            reason = "Missing CSRF token"
        else:
            result = await self.guard.csrf.validate_token(token, session_id or "")
            if result.valid:
                return None
            reason = result.reason

        await self.guard.monitor.log_security_event(
            SecurityEventType.CSRF_VIOLATION, Severity.HIGH,
            f"CSRF validation failed on {context.method} {context.path}: {reason}",
            context.ip_address,
            details={"path": context.path, "method": context.method, "reason": reason},
            user_id=getattr(user, "id", None),
            user_agent=context.user_agent,
        )
        return CSRFInvalidError(reason)

    def _deny(self, request: Request, context: RequestContext, error: AdminGuardError) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        reason = error.details.get("reason") or error.message

        if not context.path.startswith("/api/") and isinstance(error, (UnauthorizedError, ForbiddenError)):
            query = urlencode({
                "callbackUrl": context.path,
                "error": error.error_code.lower(),
                "reason": reason,
            })
            return RedirectResponse(f"{self.guard.settings.login_path}?{query}", status_code=302)

        body = create_error_response(error)
        body["error"]["details"] = {
            **error.details,
            "reason": reason,
            "path": context.path,
            "requestId": request_id,
        }
        response = JSONResponse(body, status_code=get_http_status_code(error))
        if isinstance(error, RateLimitedError):
            response.headers["Retry-After"] = str(error.retry_after)
        self._add_security_headers(response)
        return response

    def _add_security_headers(self, response: Response) -> None:
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
