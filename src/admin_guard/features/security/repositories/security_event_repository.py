"""AsyncPG-based security event repository.

Writes security events and audit entries to PostgreSQL. The pool (or any
object exposing ``execute``/``fetch``) is injected; the schema name comes
from configuration, never from request data.
"""

import json
import logging
from typing import Any, Dict, List

import asyncpg

from ..entities.security_event import SecurityEvent, SecurityEventFilter
from ....config.constants import Severity
from ....core.exceptions import ConfigurationError, PersistenceError

logger = logging.getLogger(__name__)


class AsyncpgSecurityEventRepository:
    """AsyncPG implementation of the SecurityEventRepository protocol."""

    def __init__(self, pool: asyncpg.Pool, schema: str = "admin"):
        if not schema.isidentifier():
            raise ConfigurationError(f"Invalid schema name: {schema}")
        self._pool = pool
        self.schema = schema

    @classmethod
    async def connect(cls, dsn: str, schema: str = "admin", **pool_kwargs) -> "AsyncpgSecurityEventRepository":
        pool = await asyncpg.create_pool(dsn, **pool_kwargs)
        return cls(pool, schema)

    async def close(self) -> None:
        await self._pool.close()

    def _build_event_from_row(self, row) -> SecurityEvent:
        details = row["details"]
        if isinstance(details, str):
            details = json.loads(details)
        return SecurityEvent(
            id=str(row["id"]),
            type=row["type"],
            severity=Severity(row["severity"]),
            message=row["message"],
            ip_address=row["ip_address"],
            user_id=row["user_id"],
            user_agent=row["user_agent"],
            details=details or {},
            timestamp=row["created_at"],
            resolved=row["resolved"],
            resolved_by=row["resolved_by"],
            resolved_at=row["resolved_at"],
        )

    async def create_security_event(self, event: SecurityEvent) -> None:
        query = f"""
            INSERT INTO {self.schema}.security_events
                (id, type, severity, message, ip_address, user_id, user_agent,
                 details, created_at, resolved, resolved_by, resolved_at)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8::jsonb, $9, $10, $11, $12)
            ON CONFLICT (id) DO NOTHING
        """
        try:
            await self._pool.execute(
                query,
                event.id,
                event.type,
                event.severity.value,
                event.message,
                event.ip_address,
                event.user_id,
                event.user_agent,
                json.dumps(event.details, default=str),
                event.timestamp,
                event.resolved,
                event.resolved_by,
                event.resolved_at,
            )
        except (asyncpg.PostgresError, OSError) as e:
            logger.error(f"Failed to store security event {event.id}: {e}")
            raise PersistenceError(f"Failed to store security event: {e}") from e

    async def create_audit_entry(self, entry: Dict[str, Any]) -> None:
        query = f"""
            INSERT INTO {self.schema}.audit_logs (action, user_id, details, created_at)
            VALUES ($1, $2, $3::jsonb, NOW())
        """
        details = {k: v for k, v in entry.items() if k not in ("action", "user_id")}
        try:
            await self._pool.execute(
                query,
                entry.get("action", "unknown"),
                entry.get("user_id"),
                json.dumps(details, default=str),
            )
        except (asyncpg.PostgresError, OSError) as e:
            logger.error(f"Failed to store audit entry {entry.get('action')}: {e}")
            raise PersistenceError(f"Failed to store audit entry: {e}") from e

    async def query_events(self, event_filter: SecurityEventFilter) -> List[SecurityEvent]:
        conditions = []
        params: List[Any] = []

        def add(condition: str, value: Any) -> None:
            params.append(value)
            conditions.append(condition.format(n=len(params)))

        if event_filter.severity is not None:
            add("severity = ${n}", Severity(event_filter.severity).value)
        if event_filter.event_type is not None:
            add("type = ${n}", event_filter.event_type)
        if event_filter.ip_address is not None:
            add("ip_address = ${n}", event_filter.ip_address)
        if event_filter.user_id is not None:
            add("user_id = ${n}", event_filter.user_id)
        if event_filter.since is not None:
            add("created_at >= ${n}", event_filter.since)
        if event_filter.unresolved_only:
            conditions.append("resolved = FALSE")

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        params.append(event_filter.limit)
        query = f"""
            SELECT id, type, severity, message, ip_address, user_id, user_agent,
                   details, created_at, resolved, resolved_by, resolved_at
            FROM {self.schema}.security_events
            {where}
            ORDER BY created_at DESC
            LIMIT ${len(params)}
        """
        try:
            rows = await self._pool.fetch(query, *params)
        except (asyncpg.PostgresError, OSError) as e:
            logger.error(f"Failed to query security events: {e}")
            raise PersistenceError(f"Failed to query security events: {e}") from e
        return [self._build_event_from_row(row) for row in rows]
