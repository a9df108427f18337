# ruff: noqa: S608
"""Security event logging service.

Recording is best effort and can run off the request path: a failure to
persist an event is logged locally and never reaches the caller.
Queries walk the day partitions that cover the requested time window.
"""

import asyncio
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog
from cassandra.util import uuid_from_time

from learnhub.core.exceptions import NotFoundError

from .models import (
    SecurityEvent,
    SecurityEventType,
    ThreatLevel,
    buckets_between,
    day_bucket_for_event,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)

RATE_LIMIT_QUERY_LIMIT = 100
UNRESOLVED_QUERY_LIMIT = 50


class SecurityEventNotFoundError(NotFoundError):
    def __init__(self, message: str = "Security event not found"):
        super().__init__(message, "security_event_not_found")


class SecurityLogService:
    """Service for recording and querying security events."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._pending: set[asyncio.Task] = set()
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._insert_event = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.security_events
            (day_bucket, event_id, event_type, threat_level, ip_address, user_id,
             endpoint, method, payload, user_agent, description, resolved,
             created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._get_day_events = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.security_events
            WHERE day_bucket = ?
        """)

        self._resolve_event = self.session.prepare(f"""
            UPDATE {self.keyspace}.security_events
            SET resolved = true, resolved_at = ?, resolved_by = ?, notes = ?
            WHERE day_bucket = ? AND event_id = ?
            IF EXISTS
        """)

    # ==========================================================================
    # Recording
    # ==========================================================================

    def record(self, **event: Any) -> asyncio.Task:
        """Schedule ``log_event`` in the background and return at once.

        The task is held until it finishes so it is not garbage collected
        mid-write; ``drain`` waits for whatever is still in flight.
        """
        task = asyncio.create_task(self.log_event(**event), name="security_event")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self, timeout: float = 5.0) -> None:
        """Wait for scheduled writes, cancelling any still running at timeout."""
        if not self._pending:
            return
        _, still_running = await asyncio.wait(set(self._pending), timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning("security_log_drain_timeout", pending=len(still_running))

    async def log_event(
        self,
        event_type: SecurityEventType,
        threat_level: ThreatLevel,
        ip_address: str,
        description: str,
        user_id: str | None = None,
        endpoint: str | None = None,
        method: str | None = None,
        payload: Any = None,
        user_agent: str | None = None,
    ) -> None:
        """Persist a security event and echo it to the application log.

        Never raises: invalid input and storage failures are logged and
        dropped.
        """
        try:
            now = datetime.now(UTC)
            event = SecurityEvent(
                event_id=uuid_from_time(now),
                event_type=SecurityEventType(event_type).value,
                threat_level=ThreatLevel(threat_level).value,
                ip_address=ip_address,
                description=description,
                user_id=user_id,
                endpoint=endpoint,
                method=method,
                payload=payload,
                user_agent=user_agent,
                created_at=now,
            )
            await self.session.aexecute(
                self._insert_event,
                [
                    event.day_bucket,
                    event.event_id,
                    event.event_type,
                    event.threat_level,
                    event.ip_address,
                    event.user_id,
                    event.endpoint,
                    event.method,
                    event.payload_json(),
                    event.user_agent,
                    event.description,
                    False,
                    event.created_at,
                ],
            )
        except Exception:
            logger.exception(
                "security_event_store_failed",
                event_type=str(event_type),
                threat_level=str(threat_level),
                ip_address=ip_address,
            )
            return

        log_method = self._log_method(event.threat_level)
        log_method(
            "security_event",
            event_type=event.event_type,
            threat_level=event.threat_level,
            ip_address=ip_address,
            description=description,
            endpoint=endpoint,
        )

    @staticmethod
    def _log_method(threat_level: str):
        if threat_level == ThreatLevel.LOW.value:
            return logger.info
        if threat_level == ThreatLevel.MEDIUM.value:
            return logger.warning
        return logger.error

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def _events_since(self, since: datetime) -> list[SecurityEvent]:
        """Events created at or after ``since``, newest first."""
        events: list[SecurityEvent] = []
        for bucket in buckets_between(since, datetime.now(UTC)):
            rows = await self.session.aexecute(self._get_day_events, [bucket])
            events.extend(
                event
                for event in (SecurityEvent.from_row(row) for row in rows)
                if event.created_at >= since
            )
        events.sort(key=lambda e: e.created_at, reverse=True)
        return events

    async def get_rate_limit_violations(self, hours: int = 24) -> list[SecurityEvent]:
        since = datetime.now(UTC) - timedelta(hours=hours)
        events = await self._events_since(since)
        return [
            e
            for e in events
            if e.event_type == SecurityEventType.RATE_LIMIT_EXCEEDED.value
        ][:RATE_LIMIT_QUERY_LIMIT]

    async def get_blocked_ips(self, hours: int = 24) -> list[str]:
        """Distinct IPs blocked in the window, most recent first."""
        since = datetime.now(UTC) - timedelta(hours=hours)
        events = await self._events_since(since)
        blocked = [
            e.ip_address
            for e in events
            if e.event_type == SecurityEventType.IP_BLOCKED.value
        ]
        return list(dict.fromkeys(blocked))

    async def get_threats_by_ip(
        self, ip_address: str, days: int = 7
    ) -> list[SecurityEvent]:
        since = datetime.now(UTC) - timedelta(days=days)
        events = await self._events_since(since)
        return [e for e in events if e.ip_address == ip_address]

    async def get_security_metrics(self, days: int = 30) -> dict[str, Any]:
        """Aggregate counts over the last ``days`` days.

        Returns:
            total_events, events_by_type, events_by_threat,
            unresolved_critical and the period label
        """
        since = datetime.now(UTC) - timedelta(days=days)
        events = await self._events_since(since)

        by_type: dict[str, int] = {}
        by_threat: dict[str, int] = {}
        unresolved_critical = 0
        for event in events:
            by_type[event.event_type] = by_type.get(event.event_type, 0) + 1
            by_threat[event.threat_level] = by_threat.get(event.threat_level, 0) + 1
            if event.threat_level == ThreatLevel.CRITICAL.value and not event.resolved:
                unresolved_critical += 1

        return {
            "total_events": len(events),
            "events_by_type": by_type,
            "events_by_threat": by_threat,
            "unresolved_critical": unresolved_critical,
            "period": f"{days} days",
        }

    async def get_unresolved_threats(
        self,
        threat_level: ThreatLevel | None = None,
        days: int = 30,
    ) -> list[SecurityEvent]:
        since = datetime.now(UTC) - timedelta(days=days)
        events = await self._events_since(since)
        unresolved = [
            e
            for e in events
            if not e.resolved
            and (threat_level is None or e.threat_level == ThreatLevel(threat_level))
        ]
        unresolved.sort(key=lambda e: (e.created_at, e.severity), reverse=True)
        return unresolved[:UNRESOLVED_QUERY_LIMIT]

    async def resolve_event(
        self,
        event_id: UUID,
        resolved_by: str,
        notes: str | None = None,
    ) -> None:
        """Mark an event as reviewed.

        Raises:
            SecurityEventNotFoundError: If no event has this ID
        """
        result = await self.session.aexecute(
            self._resolve_event,
            [
                datetime.now(UTC),
                resolved_by,
                notes,
                day_bucket_for_event(event_id),
                event_id,
            ],
        )
        if not result.was_applied:
            raise SecurityEventNotFoundError

        logger.info(
            "security_event_resolved",
            event_id=str(event_id),
            resolved_by=resolved_by,
        )
