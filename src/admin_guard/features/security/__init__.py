"""Security feature for admin-guard.

Feature-First architecture for security monitoring:
- entities/: security events, IP block entries, alert configs, protocols
- rules/: data-driven threat detection rules
- services/: failure counters, persistence dispatcher, SecurityMonitor
- repositories/: asyncpg persistence of events and audit entries
"""

from .entities import (
    SecurityEvent,
    IPBlockEntry,
    AlertConfig,
    SecurityEventFilter,
    SecurityEventRepository,
    RateLimiter,
)
from .rules import (
    ThreatObservation,
    ThreatAlert,
    ThreatRule,
    BruteForceRule,
    PrivilegeEscalationRule,
    SuspiciousIPRule,
    SensitiveEndpointRule,
    default_rules,
)
from .services import FailureTracker, EventDispatcher, SecurityMonitor
from .repositories import AsyncpgSecurityEventRepository

__all__ = [
    # Entities
    "SecurityEvent",
    "IPBlockEntry",
    "AlertConfig",
    "SecurityEventFilter",

    # Protocols
    "SecurityEventRepository",
    "RateLimiter",

    # Rules
    "ThreatObservation",
    "ThreatAlert",
    "ThreatRule",
    "BruteForceRule",
    "PrivilegeEscalationRule",
    "SuspiciousIPRule",
    "SensitiveEndpointRule",
    "default_rules",

    # Services
    "FailureTracker",
    "EventDispatcher",
    "SecurityMonitor",

    # Repositories
    "AsyncpgSecurityEventRepository",
]
