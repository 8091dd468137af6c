"""Security monitor: event log, failure counters, threat rules and IP blocks.

Failure stream per IP::

    NORMAL --login_failed--> ACCUMULATING(n) --n >= auto_block_threshold--> BLOCKED

``login_success`` resets the IP and user counters but never lifts a block;
only ``unblock_ip`` does. Blocks do not expire.

Every logged event is handed to the ``EventDispatcher`` for persistence.
That hand-off never waits on the store, and a failing store never changes
what this monitor returns.
"""

import asyncio
import logging
import time
from collections import Counter, OrderedDict
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..entities.security_event import AlertConfig, IPBlockEntry, SecurityEvent
from ..rules.threat_rules import ThreatAlert, ThreatObservation, ThreatRule, default_rules
from .event_dispatcher import EventDispatcher
from .failure_tracker import FailureTracker
from ....config.constants import (
    ALERT_EVENT_TYPES,
    DENIAL_EVENT_TYPES,
    UNKNOWN_IP,
    SecurityEventType,
    Severity,
)
from ....config.settings import GuardSettings

logger = logging.getLogger(__name__)

_DENIAL_TYPES = frozenset(t.value for t in DENIAL_EVENT_TYPES)
_ALERT_TYPES = frozenset(t.value for t in ALERT_EVENT_TYPES)
_BENIGN_TYPES = frozenset({
    SecurityEventType.LOGIN_SUCCESS.value,
    SecurityEventType.LOGOUT.value,
    SecurityEventType.ACCESS_GRANTED.value,
    SecurityEventType.IP_UNBLOCKED.value,
})


class SecurityMonitor:
    """In-process security event log and threat detector."""

    def __init__(
        self,
        settings: Optional[GuardSettings] = None,
        dispatcher: Optional[EventDispatcher] = None,
        rules: Optional[List[ThreatRule]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or GuardSettings()
        self._dispatcher = dispatcher or EventDispatcher(None)
        self._clock = clock
        self._rules = rules if rules is not None else default_rules(
            brute_force_threshold=self.settings.brute_force_threshold,
            suspicious_ip_threshold=self.settings.suspicious_ip_threshold,
            sensitive_prefixes=self.settings.sensitive_prefixes,
        )

        window = self.settings.failure_window_seconds
        self._ip_failures = FailureTracker(window, clock)
        self._user_failures = FailureTracker(window, clock)
        self._ip_denials = FailureTracker(window, clock)

        self._events: "OrderedDict[str, SecurityEvent]" = OrderedDict()
        self._blocked: Dict[str, IPBlockEntry] = {}
        self._last_alert: Dict[Tuple[str, str], Tuple[float, int]] = {}
        self._alert_configs: Dict[str, AlertConfig] = {
            alert_type: AlertConfig(alert_type) for alert_type in _ALERT_TYPES
        }
        self._lock = asyncio.Lock()
        self._cleanup_task: Optional[asyncio.Task] = None

    @property
    def dispatcher(self) -> EventDispatcher:
        return self._dispatcher

    # Failure counter view used by threat rules

    def failed_logins_for_ip(self, ip: str) -> int:
        return self._ip_failures.count(ip)

    def failed_logins_for_user(self, user_id: str) -> int:
        return self._user_failures.count(user_id)

    def denials_for_ip(self, ip: str) -> int:
        return self._ip_denials.count(ip)

    # Event log

    async def log_security_event(
        self,
        event_type: str,
        severity: Severity,
        message: str,
        ip_address: Optional[str],
        details: Optional[Dict[str, Any]] = None,
        user_id: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> SecurityEvent:
        """Record an event, update counters and run the threat rules."""
        event = SecurityEvent(
            type=event_type,
            severity=severity,
            message=message,
            ip_address=ip_address or UNKNOWN_IP,
            user_id=user_id,
            user_agent=user_agent,
            details=dict(details or {}),
        )
        observation = ThreatObservation(
            event_type=event.type,
            ip_address=event.ip_address,
            user_id=user_id,
            role=event.details.get("role"),
            path=event.details.get("path"),
            method=event.details.get("method"),
        )
        await self._ingest(event, observation)
        return event

    async def record_login_attempt(
        self,
        ip_address: Optional[str],
        success: bool,
        user_id: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> SecurityEvent:
        """Shortcut for the authentication provider's login outcomes."""
        if success:
            return await self.log_security_event(
                SecurityEventType.LOGIN_SUCCESS, Severity.LOW, "Login succeeded",
                ip_address, user_id=user_id, user_agent=user_agent,
            )
        return await self.log_security_event(
            SecurityEventType.LOGIN_FAILED, Severity.MEDIUM, "Login failed",
            ip_address, user_id=user_id, user_agent=user_agent,
        )

    async def observe(self, observation: ThreatObservation) -> List[SecurityEvent]:
        """Run the threat rules on an observation without logging a raw event."""
        async with self._lock:
            alerts = self._evaluate_rules(observation)
            return [self._append(self._alert_event(alert, observation)) for alert in alerts]

    async def get_security_events(
        self,
        limit: int = 100,
        severity: Optional[Severity] = None,
        event_type: Optional[str] = None,
    ) -> List[SecurityEvent]:
        """Return the newest events first, optionally filtered."""
        if limit <= 0:
            return []
        if severity is not None:
            severity = Severity(severity)
        if isinstance(event_type, SecurityEventType):
            event_type = event_type.value

        async with self._lock:
            events = list(reversed(self._events.values()))

        result = []
        for event in events:
            if severity is not None and event.severity != severity:
                continue
            if event_type is not None and event.type != event_type:
                continue
            result.append(event)
            if len(result) >= limit:
                break
        return result

    async def get_security_stats(self) -> Dict[str, Any]:
        """Summarize the log.

        ``threat_level`` is the highest severity among unresolved events in
        the observation window, ``low`` when there is none.
        """
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=self.settings.stats_window_seconds)
        async with self._lock:
            events = list(self._events.values())
            blocked = sorted(self._blocked.values(), key=lambda e: e.blocked_at)

        threat_level = Severity.LOW
        type_counts: Counter = Counter()
        for event in events:
            if event.timestamp < cutoff:
                continue
            if event.type not in _BENIGN_TYPES:
                type_counts[event.type] += 1
            if not event.resolved and event.severity.rank > threat_level.rank:
                threat_level = event.severity

        recent_alerts = [
            event for event in reversed(events)
            if not event.resolved and (event.type in _ALERT_TYPES or event.severity.rank >= Severity.HIGH.rank)
        ][:10]

        return {
            "total_events": len(events),
            "threat_level": threat_level.value,
            "top_threats": [{"type": t, "count": c} for t, c in type_counts.most_common(5)],
            "ip_blacklist": blocked,
            "recent_alerts": recent_alerts,
        }

    async def resolve_security_event(self, event_id: str, resolved_by: str) -> bool:
        """Mark an event resolved. Returns False when the id is unknown."""
        async with self._lock:
            event = self._events.get(event_id)
            if event is None:
                return False
            event.resolve(resolved_by)

        self._dispatcher.submit_audit({
            "action": "security_event_resolved",
            "event_id": event_id,
            "user_id": resolved_by,
            "timestamp": event.resolved_at.isoformat(),
        })
        logger.info(f"Security event {event_id} resolved by {resolved_by}")
        return True

    # IP block list

    async def block_ip(self, ip: str, reason: str) -> IPBlockEntry:
        async with self._lock:
            entry = self._blocked.get(ip)
            if entry is None:
                entry = self._block(ip, reason, automatic=False)
        return entry

    async def unblock_ip(self, ip: str, unblocked_by: Optional[str] = None) -> bool:
        """Lift a block and clear the IP's counters. False if not blocked."""
        async with self._lock:
            if self._blocked.pop(ip, None) is None:
                return False
            self._ip_failures.reset(ip)
            self._ip_denials.reset(ip)
            self._append(SecurityEvent(
                type=SecurityEventType.IP_UNBLOCKED,
                severity=Severity.LOW,
                message=f"IP {ip} unblocked",
                ip_address=ip,
                user_id=unblocked_by,
            ))
        logger.info(f"IP {ip} unblocked by {unblocked_by or 'system'}")
        return True

    async def is_ip_blocked(self, ip: Optional[str]) -> bool:
        return bool(ip) and ip in self._blocked

    async def get_blocked_ips(self) -> List[IPBlockEntry]:
        async with self._lock:
            return list(self._blocked.values())

    # Alert configuration

    def get_alert_configs(self) -> Dict[str, AlertConfig]:
        return dict(self._alert_configs)

    def update_alert_config(
        self,
        alert_type: str,
        enabled: Optional[bool] = None,
        severity: Optional[Severity] = None,
    ) -> AlertConfig:
        if isinstance(alert_type, SecurityEventType):
            alert_type = alert_type.value
        config = self._alert_configs.get(alert_type)
        if config is None:
            raise ValueError(f"Unknown alert type: {alert_type}")
        if enabled is not None:
            config.enabled = enabled
        if severity is not None:
            config.severity = Severity(severity)
        logger.info(f"Alert config updated: {config.to_dict()}")
        return config

    # Lifecycle

    async def cleanup_stale_state(self) -> int:
        """Forget expired counters and alert cooldowns."""
        async with self._lock:
            removed = self._ip_failures.prune() + self._user_failures.prune() + self._ip_denials.prune()
            cutoff = self._clock() - self.settings.alert_cooldown_seconds
            stale = [key for key, (at, _) in self._last_alert.items() if at <= cutoff]
            for key in stale:
                del self._last_alert[key]
        return removed + len(stale)

    async def start(self, cleanup_interval: float = 300.0) -> None:
        await self._dispatcher.start()
        if self._cleanup_task is not None and not self._cleanup_task.done():
            return

        async def cleanup_loop():
            while True:
                try:
                    await asyncio.sleep(cleanup_interval)
                    await self.cleanup_stale_state()
                except asyncio.CancelledError:
                    break
                except Exception as e:
                    logger.warning(f"Security monitor cleanup error: {e}")

        self._cleanup_task = asyncio.create_task(cleanup_loop())

    async def stop(self) -> None:
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None
        await self._dispatcher.stop()

    # Internals; callers hold self._lock

    async def _ingest(self, event: SecurityEvent, observation: ThreatObservation) -> List[SecurityEvent]:
        async with self._lock:
            self._append(event)
            self._update_counters(event)
            self._check_auto_block(event)
            alerts = self._evaluate_rules(observation)
            return [self._append(self._alert_event(alert, observation)) for alert in alerts]

    def _append(self, event: SecurityEvent) -> SecurityEvent:
        self._events[event.id] = event
        while len(self._events) > self.settings.max_events:
            self._events.popitem(last=False)
        self._dispatcher.submit_event(event)
        return event

    def _update_counters(self, event: SecurityEvent) -> None:
        if event.type == SecurityEventType.LOGIN_FAILED.value:
            self._ip_failures.record(event.ip_address)
            if event.user_id:
                self._user_failures.record(event.user_id)
        elif event.type == SecurityEventType.LOGIN_SUCCESS.value:
            self._ip_failures.reset(event.ip_address)
            if event.user_id:
                self._user_failures.reset(event.user_id)

        if event.type in _DENIAL_TYPES:
            self._ip_denials.record(event.ip_address)

    def _check_auto_block(self, event: SecurityEvent) -> None:
        if event.type != SecurityEventType.LOGIN_FAILED.value:
            return
        ip = event.ip_address
        if ip == UNKNOWN_IP or ip in self._blocked:
            return
        failures = self._ip_failures.count(ip)
        if failures >= self.settings.auto_block_threshold:
            self._block(ip, f"Automatic block after {failures} failed login attempts", automatic=True)

    def _block(self, ip: str, reason: str, automatic: bool) -> IPBlockEntry:
        entry = IPBlockEntry(ip=ip, reason=reason, automatic=automatic)
        self._blocked[ip] = entry
        self._append(SecurityEvent(
            type=SecurityEventType.IP_BLOCKED,
            severity=Severity.HIGH,
            message=f"IP {ip} blocked: {reason}",
            ip_address=ip,
            details={"reason": reason, "automatic": automatic},
        ))
        logger.warning(f"IP {ip} blocked: {reason}")
        return entry

    def _evaluate_rules(self, observation: ThreatObservation) -> List[ThreatAlert]:
        alerts = []
        now = self._clock()
        for rule in self._rules:
            config = self._alert_configs.get(rule.alert_type)
            if config is not None and not config.enabled:
                continue

            alert = rule.evaluate(observation, self)
            if alert is None:
                continue

            cooldown_key = (alert.alert_type, alert.key)
            rank = self._alert_severity(alert).rank
            last = self._last_alert.get(cooldown_key)
            # An escalation is reported even inside the cooldown
            if last is not None and now - last[0] < self.settings.alert_cooldown_seconds and rank <= last[1]:
                continue
            self._last_alert[cooldown_key] = (now, rank)
            alerts.append(alert)
        return alerts

    def _alert_severity(self, alert: ThreatAlert) -> Severity:
        config = self._alert_configs.get(alert.alert_type)
        return config.severity if config is not None and config.severity else alert.severity

    def _alert_event(self, alert: ThreatAlert, observation: ThreatObservation) -> SecurityEvent:
        severity = self._alert_severity(alert)
        logger.warning(f"Security alert [{severity.value}] {alert.alert_type}: {alert.message}")
        return SecurityEvent(
            type=alert.alert_type,
            severity=severity,
            message=alert.message,
            ip_address=observation.ip_address,
            user_id=observation.user_id,
            details={"alert": True, **alert.details},
        )
