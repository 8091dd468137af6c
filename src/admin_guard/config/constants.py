"""Constants and enums for admin-guard.

Role names, event severities and security event types shared by the
permission, routing and monitoring features.
"""

from enum import Enum
from typing import Final


class Role(str, Enum):
    """Built-in user roles."""
    ADMIN = "ADMIN"
    EDITOR = "EDITOR"
    VIEWER = "VIEWER"


class Severity(str, Enum):
    """Security event severity, ordered from least to most severe."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return SEVERITY_RANK[self]


SEVERITY_RANK: Final[dict] = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


class SecurityEventType(str, Enum):
    """Security event types recorded by the monitor."""
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILED = "login_failed"
    LOGOUT = "logout"
    UNAUTHORIZED_ACCESS = "unauthorized_access"
    PERMISSION_DENIED = "permission_denied"
    ACCESS_GRANTED = "access_granted"
    CSRF_VIOLATION = "csrf_violation"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    IP_BLOCKED = "ip_blocked"
    IP_UNBLOCKED = "ip_unblocked"
    ROLE_CHANGED = "role_changed"

    # Alerts raised by threat rules
    BRUTE_FORCE_ATTACK = "brute_force_attack"
    PRIVILEGE_ESCALATION = "privilege_escalation"
    SUSPICIOUS_ACTIVITY = "suspicious_activity"
    SENSITIVE_ACCESS = "sensitive_access"


# Event types that count as a denial for suspicious-IP scoring
DENIAL_EVENT_TYPES: Final[frozenset] = frozenset({
    SecurityEventType.LOGIN_FAILED,
    SecurityEventType.UNAUTHORIZED_ACCESS,
    SecurityEventType.PERMISSION_DENIED,
    SecurityEventType.CSRF_VIOLATION,
    SecurityEventType.RATE_LIMIT_EXCEEDED,
})

ALERT_EVENT_TYPES: Final[frozenset] = frozenset({
    SecurityEventType.BRUTE_FORCE_ATTACK,
    SecurityEventType.PRIVILEGE_ESCALATION,
    SecurityEventType.SUSPICIOUS_ACTIVITY,
    SecurityEventType.SENSITIVE_ACCESS,
})

# HTTP methods that change server state and require a CSRF token
STATE_CHANGING_METHODS: Final[frozenset] = frozenset({"POST", "PUT", "PATCH", "DELETE"})

UNKNOWN_IP: Final[str] = "unknown"
