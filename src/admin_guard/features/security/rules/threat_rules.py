"""Threat detection rules.

Each rule looks at one observation plus the monitor's sliding-window
counters and either returns a ``ThreatAlert`` or None. Rules hold only
their thresholds, so each one can be exercised on its own.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Protocol, Tuple

from ....config.constants import DENIAL_EVENT_TYPES, Role, SecurityEventType, Severity


@dataclass(frozen=True)
class ThreatObservation:
    """What the monitor saw: a logged event, optionally with route context."""

    event_type: str
    ip_address: str
    user_id: Optional[str] = None
    role: Optional[str] = None
    path: Optional[str] = None
    method: Optional[str] = None
    admin_only: bool = False
    auth_only: bool = False
    granted: Optional[bool] = None


@dataclass(frozen=True)
class ThreatAlert:
    """Alert raised by a rule, deduplicated by ``(alert_type, key)``."""

    alert_type: str
    severity: Severity
    message: str
    key: str
    details: Dict[str, Any] = field(default_factory=dict)


class ThreatCounters(Protocol):
    """Read-only view of the monitor's failure counters."""

    def failed_logins_for_ip(self, ip: str) -> int:
        ...

    def failed_logins_for_user(self, user_id: str) -> int:
        ...

    def denials_for_ip(self, ip: str) -> int:
        ...


class ThreatRule(ABC):
    """Base class for detection rules."""

    alert_type: str = ""

    @abstractmethod
    def evaluate(self, observation: ThreatObservation, counters: ThreatCounters) -> Optional[ThreatAlert]:
        ...


class BruteForceRule(ThreatRule):
    """Repeated failed logins from one IP or against one account."""

    alert_type = SecurityEventType.BRUTE_FORCE_ATTACK.value

    def __init__(self, threshold: int = 5):
        self.threshold = threshold

    def evaluate(self, observation, counters):
        if observation.event_type != SecurityEventType.LOGIN_FAILED.value:
            return None

        ip_failures = counters.failed_logins_for_ip(observation.ip_address)
        if ip_failures >= self.threshold:
            severity = Severity.CRITICAL if ip_failures >= self.threshold * 2 else Severity.HIGH
            return ThreatAlert(
                alert_type=self.alert_type,
                severity=severity,
                message=f"Brute force attack suspected from {observation.ip_address}: {ip_failures} failed logins",
                key=f"ip:{observation.ip_address}",
                details={"failed_attempts": ip_failures, "threshold": self.threshold},
            )

        if observation.user_id:
            user_failures = counters.failed_logins_for_user(observation.user_id)
            if user_failures >= self.threshold:
                return ThreatAlert(
                    alert_type=self.alert_type,
                    severity=Severity.HIGH,
                    message=f"Account {observation.user_id} targeted by {user_failures} failed logins",
                    key=f"user:{observation.user_id}",
                    details={"failed_attempts": user_failures, "threshold": self.threshold},
                )
        return None


class PrivilegeEscalationRule(ThreatRule):
    """Non-admin role requesting an admin-only route, granted or not."""

    alert_type = SecurityEventType.PRIVILEGE_ESCALATION.value

    def __init__(self, admin_role: str = Role.ADMIN.value):
        self.admin_role = admin_role

    def evaluate(self, observation, counters):
        if not observation.admin_only or observation.role is None:
            return None
        if observation.role == self.admin_role:
            return None
        target = f"{observation.method} {observation.path}" if observation.method else observation.path
        return ThreatAlert(
            alert_type=self.alert_type,
            severity=Severity.CRITICAL,
            message=f"Privilege escalation attempt: {observation.role} user {observation.user_id} requested {target}",
            key=f"user:{observation.user_id}:{observation.path}",
            details={
                "role": observation.role,
                "path": observation.path,
                "method": observation.method,
                "granted": observation.granted,
            },
        )


class SuspiciousIPRule(ThreatRule):
    """Repeated denials of any kind from one IP."""

    alert_type = SecurityEventType.SUSPICIOUS_ACTIVITY.value

    def __init__(self, threshold: int = 5, denial_types: Iterable[str] = ()):
        self.threshold = threshold
        self.denial_types = frozenset(denial_types) or frozenset(t.value for t in DENIAL_EVENT_TYPES)

    def evaluate(self, observation, counters):
        if observation.event_type not in self.denial_types:
            return None
        denials = counters.denials_for_ip(observation.ip_address)
        if denials < self.threshold:
            return None
        return ThreatAlert(
            alert_type=self.alert_type,
            severity=Severity.HIGH,
            message=f"Suspicious activity from {observation.ip_address}: {denials} denied requests",
            key=f"ip:{observation.ip_address}",
            details={"violations": denials, "threshold": self.threshold},
        )


class SensitiveEndpointRule(ThreatRule):
    """Informational alert for authenticated access to sensitive routes."""

    alert_type = SecurityEventType.SENSITIVE_ACCESS.value

    def __init__(self, sensitive_prefixes: Iterable[str] = ()):
        self.sensitive_prefixes: Tuple[str, ...] = tuple(sensitive_prefixes)

    def is_sensitive(self, path: Optional[str], auth_only: bool) -> bool:
        if path is None:
            return False
        return auth_only or path.startswith(self.sensitive_prefixes)

    def evaluate(self, observation, counters):
        if not observation.user_id or observation.granted is None:
            return None
        if not self.is_sensitive(observation.path, observation.auth_only):
            return None
        return ThreatAlert(
            alert_type=self.alert_type,
            severity=Severity.MEDIUM,
            message=f"Sensitive endpoint {observation.path} accessed by user {observation.user_id}",
            key=f"user:{observation.user_id}:{observation.path}",
            details={"path": observation.path, "method": observation.method, "granted": observation.granted},
        )


def default_rules(
    brute_force_threshold: int = 5,
    suspicious_ip_threshold: int = 5,
    sensitive_prefixes: Iterable[str] = (),
    admin_role: str = Role.ADMIN.value,
):
    """Build the standard rule set."""
    return [
        BruteForceRule(brute_force_threshold),
        PrivilegeEscalationRule(admin_role),
        SuspiciousIPRule(suspicious_ip_threshold),
        SensitiveEndpointRule(sensitive_prefixes),
    ]
