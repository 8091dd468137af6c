"""Threat detection rules."""

from .threat_rules import (
    ThreatObservation,
    ThreatAlert,
    ThreatCounters,
    ThreatRule,
    BruteForceRule,
    PrivilegeEscalationRule,
    SuspiciousIPRule,
    SensitiveEndpointRule,
    default_rules,
)

__all__ = [
    "ThreatObservation",
    "ThreatAlert",
    "ThreatCounters",
    "ThreatRule",
    "BruteForceRule",
    "PrivilegeEscalationRule",
    "SuspiciousIPRule",
    "SensitiveEndpointRule",
    "default_rules",
]
