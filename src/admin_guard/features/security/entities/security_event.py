"""Security event entities.

A ``SecurityEvent`` is created by any component that observes a notable
action. Only ``resolve`` mutates it; events are never deleted here, only
archived by the external store.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from ....config.constants import SecurityEventType, Severity


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SecurityEvent:
    """Recorded security-relevant action or alert."""

    type: str
    severity: Severity
    message: str
    ip_address: str
    user_id: Optional[str] = None
    user_agent: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=_utcnow)
    resolved: bool = False
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None

    def __post_init__(self):
        if isinstance(self.type, SecurityEventType):
            self.type = self.type.value
        if not isinstance(self.severity, Severity):
            self.severity = Severity(self.severity)

    def resolve(self, resolved_by: str) -> None:
        """Mark the event resolved; later calls keep the first resolver."""
        if self.resolved:
            return
        self.resolved = True
        self.resolved_by = resolved_by
        self.resolved_at = _utcnow()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "severity": self.severity.value,
            "message": self.message,
            "ip_address": self.ip_address,
            "user_id": self.user_id,
            "user_agent": self.user_agent,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "resolved": self.resolved,
            "resolved_by": self.resolved_by,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
        }

    def __str__(self) -> str:
        return f"SecurityEvent({self.type}, {self.severity.value}, ip={self.ip_address})"


@dataclass(frozen=True)
class IPBlockEntry:
    """Block list entry. Removed only by an explicit unblock."""

    ip: str
    reason: str
    blocked_at: datetime = field(default_factory=_utcnow)
    automatic: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ip": self.ip,
            "reason": self.reason,
            "blocked_at": self.blocked_at.isoformat(),
            "automatic": self.automatic,
        }


@dataclass
class AlertConfig:
    """Per alert type switch and severity."""

    alert_type: str
    enabled: bool = True
    severity: Optional[Severity] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alert_type": self.alert_type,
            "enabled": self.enabled,
            "severity": self.severity.value if self.severity else None,
        }


@dataclass(frozen=True)
class SecurityEventFilter:
    """Query filter for stored security events."""

    limit: int = 100
    severity: Optional[Severity] = None
    event_type: Optional[str] = None
    ip_address: Optional[str] = None
    user_id: Optional[str] = None
    since: Optional[datetime] = None
    unresolved_only: bool = False
