"""Route access decisions.

Composes the route resolver, the permission evaluator and the security
monitor into the single check the HTTP layer needs. Decisions fail closed;
monitor reporting never changes a decision.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

from ..config.constants import UNKNOWN_IP, SecurityEventType, Severity
from ..core.exceptions import (
    AdminGuardError,
    ForbiddenError,
    InternalError,
    IPBlockedError,
    UnauthorizedError,
)
from ..features.permissions.entities.permission import Permission, UserIdentity
from ..features.permissions.entities.role_table import RolePermissionTable
from ..features.permissions.services.permission_evaluator import PermissionEvaluator
from ..features.routes.services.route_resolver import RoutePermissionResolver
from ..features.security.rules.threat_rules import ThreatObservation
from ..features.security.services.security_monitor import SecurityMonitor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestContext:
    """Raw request metadata supplied by the HTTP layer."""

    path: str
    method: str = "GET"
    ip_address: str = UNKNOWN_IP
    user_agent: Optional[str] = None


@dataclass(frozen=True)
class AccessDecision:
    """Result of ``can_user_access_route``."""

    allowed: bool
    reason: str
    required_permissions: Tuple[Permission, ...] = ()
    is_public: bool = False
    error: Optional[AdminGuardError] = field(default=None, compare=False)

    def __bool__(self) -> bool:
        return self.allowed


class AccessControlService:
    """Answers "may this user reach this route" and reports the outcome."""

    def __init__(
        self,
        resolver: RoutePermissionResolver,
        evaluator: PermissionEvaluator,
        monitor: SecurityMonitor,
        role_table: RolePermissionTable,
        log_granted_access: bool = False,
    ):
        self.resolver = resolver
        self.evaluator = evaluator
        self.monitor = monitor
        self.role_table = role_table
        self.log_granted_access = log_granted_access

    async def has_permission(self, user: Optional[UserIdentity], required: Permission) -> bool:
        return await self.evaluator.has_permission(user, required)

    async def can_user_access_route(
        self,
        user: Optional[UserIdentity],
        path: str,
        method: str = "GET",
        context: Optional[RequestContext] = None,
    ) -> AccessDecision:
        context = context or RequestContext(path=path, method=method)
        ip = context.ip_address or UNKNOWN_IP

        if await self.monitor.is_ip_blocked(ip):
            return AccessDecision(False, "ip_blocked", error=IPBlockedError(details={"ip": ip}))

        if self.resolver.is_public_route(path):
            return AccessDecision(True, "public", is_public=True)

        if user is None or not user.is_active:
            reason = "No authenticated user" if user is None else "User account is inactive"
            await self._report_event(
                SecurityEventType.UNAUTHORIZED_ACCESS, Severity.MEDIUM,
                f"Unauthenticated access to {method} {path}", context,
                details={"path": path, "method": method, "reason": reason},
                user_id=user.id if user else None,
            )
            return AccessDecision(False, "unauthenticated", error=UnauthorizedError(reason, details={"path": path}))

        rule = self.resolver.get_rule(path, method)
        required = tuple(rule.permissions) if rule else ()

        if not required:
            granted = True
        else:
            try:
                granted = await self.evaluator.has_any_permission(user, required)
            except InternalError as e:
                logger.error(f"Permission evaluation failed for {user.id} on {method} {path}: {e}")
                return AccessDecision(False, "error", required, error=e)

        await self._report_observation(ThreatObservation(
            event_type=(SecurityEventType.ACCESS_GRANTED if granted else SecurityEventType.PERMISSION_DENIED).value,
            ip_address=ip,
            user_id=user.id,
            role=user.role,
            path=path,
            method=method,
            admin_only=bool(required) and all(self.role_table.is_admin_only(p) for p in required),
            auth_only=bool(rule and rule.auth_only and not rule.permissions),
            granted=granted,
        ))

        if not granted:
            await self._report_event(
                SecurityEventType.PERMISSION_DENIED, Severity.MEDIUM,
                f"Permission denied for {method} {path}", context,
                details={
                    "path": path,
                    "method": method,
                    "role": user.role,
                    "required": [str(p) for p in required],
                },
                user_id=user.id,
            )
            logger.info(f"Denied {user.id} ({user.role}) on {method} {path}")
            return AccessDecision(
                False, "forbidden", required,
                error=ForbiddenError(details={"path": path, "required": [str(p) for p in required]}),
            )

        if self.log_granted_access:
            await self._report_event(
                SecurityEventType.ACCESS_GRANTED, Severity.LOW,
                f"Access granted for {method} {path}", context,
                details={"path": path, "method": method, "role": user.role},
                user_id=user.id,
            )
        return AccessDecision(True, "granted" if required else "authenticated", required)

    async def _report_event(self, event_type, severity, message, context: RequestContext, details, user_id=None):
        try:
            await self.monitor.log_security_event(
                event_type, severity, message, context.ip_address,
                details=details, user_id=user_id, user_agent=context.user_agent,
            )
        except Exception as e:
            logger.error(f"Failed to record security event {event_type}: {e}")

    async def _report_observation(self, observation: ThreatObservation) -> None:
        try:
            await self.monitor.observe(observation)
        except Exception as e:
            logger.error(f"Failed to run threat rules for {observation.path}: {e}")
