"""Database models for security event logging.

Events are partitioned by UTC day so that time-window queries read a
bounded number of partitions, newest event first inside each day.
"""

from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any
from uuid import UUID

import orjson
from cassandra.util import datetime_from_uuid1

from learnhub.utils import ensure_utc_aware


class SecurityEventType(str, Enum):
    """Kinds of security event."""

    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    BRUTE_FORCE_ATTEMPT = "brute_force_attempt"
    SQL_INJECTION_ATTEMPT = "sql_injection_attempt"
    XSS_ATTEMPT = "xss_attempt"
    CSRF_VIOLATION = "csrf_violation"
    UNAUTHORIZED_ACCESS = "unauthorized_access"
    IP_BLOCKED = "ip_blocked"
    MALICIOUS_PAYLOAD = "malicious_payload"
    CORS_VIOLATION = "cors_violation"
    SUSPICIOUS_ACTIVITY = "suspicious_activity"


class ThreatLevel(str, Enum):
    """Threat severity, in ascending order."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


THREAT_SEVERITY: dict[str, int] = {
    ThreatLevel.LOW.value: 0,
    ThreatLevel.MEDIUM.value: 1,
    ThreatLevel.HIGH.value: 2,
    ThreatLevel.CRITICAL.value: 3,
}


def day_bucket(moment: datetime) -> str:
    """Partition key for the UTC day containing ``moment``."""
    return ensure_utc_aware(moment).astimezone(UTC).date().isoformat()


def day_bucket_for_event(event_id: UUID) -> str:
    """Partition key for an event, recovered from its time-based ID."""
    return day_bucket(datetime_from_uuid1(event_id))


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

SECURITY_EVENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.security_events (
    day_bucket TEXT,
    event_id TIMEUUID,
    event_type TEXT,
    threat_level TEXT,
    ip_address TEXT,
    user_id TEXT,
    endpoint TEXT,
    method TEXT,
    payload TEXT,
    user_agent TEXT,
    description TEXT,
    resolved BOOLEAN,
    resolved_at TIMESTAMP,
    resolved_by TEXT,
    notes TEXT,
    created_at TIMESTAMP,
    PRIMARY KEY ((day_bucket), event_id)
) WITH CLUSTERING ORDER BY (event_id DESC)
"""

SECURITY_LOG_TABLES_CQL = [
    SECURITY_EVENTS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class SecurityEvent:
    """A single recorded security event.

    Attributes:
        event_id: Time-based UUID (also encodes the day bucket)
        event_type: One of SecurityEventType
        threat_level: One of ThreatLevel
        ip_address: Source IP of the offending request
        payload: Arbitrary JSON-serializable request excerpt
        resolved: Whether an admin has reviewed the event
    """

    def __init__(
        self,
        event_id: UUID,
        event_type: str,
        threat_level: str,
        ip_address: str,
        description: str = "",
        user_id: str | None = None,
        endpoint: str | None = None,
        method: str | None = None,
        payload: Any = None,
        user_agent: str | None = None,
        resolved: bool = False,
        resolved_at: datetime | None = None,
        resolved_by: str | None = None,
        notes: str | None = None,
        created_at: datetime | None = None,
    ):
        self.event_id = event_id
        self.event_type = event_type
        self.threat_level = threat_level
        self.ip_address = ip_address
        self.description = description
        self.user_id = user_id
        self.endpoint = endpoint
        self.method = method
        self.payload = payload
        self.user_agent = user_agent
        self.resolved = resolved
        self.resolved_at = ensure_utc_aware(resolved_at)
        self.resolved_by = resolved_by
        self.notes = notes
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @property
    def day_bucket(self) -> str:
        return day_bucket(self.created_at)

    @property
    def severity(self) -> int:
        return THREAT_SEVERITY.get(self.threat_level, 0)

    @classmethod
    def from_row(cls, row: Any) -> "SecurityEvent":
        """Create SecurityEvent instance from Cassandra row."""
        return cls(
            event_id=row.event_id,
            event_type=row.event_type,
            threat_level=row.threat_level,
            ip_address=row.ip_address,
            description=row.description or "",
            user_id=row.user_id,
            endpoint=row.endpoint,
            method=row.method,
            payload=orjson.loads(row.payload) if row.payload else None,
            user_agent=row.user_agent,
            resolved=bool(row.resolved),
            resolved_at=row.resolved_at,
            resolved_by=row.resolved_by,
            notes=row.notes,
            created_at=row.created_at,
        )

    def payload_json(self) -> str | None:
        if self.payload is None:
            return None
        return orjson.dumps(self.payload, default=str).decode()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "threat_level": self.threat_level,
            "ip_address": self.ip_address,
            "description": self.description,
            "user_id": self.user_id,
            "endpoint": self.endpoint,
            "method": self.method,
            "payload": self.payload,
            "user_agent": self.user_agent,
            "resolved": self.resolved,
            "resolved_at": self.resolved_at,
            "resolved_by": self.resolved_by,
            "notes": self.notes,
            "created_at": self.created_at,
        }

    def __repr__(self) -> str:
        return (
            f"<SecurityEvent {self.event_type} [{self.threat_level}] "
            f"ip={self.ip_address}>"
        )


def buckets_between(since: datetime, until: datetime) -> list[str]:
    """Day buckets covering [since, until], newest first."""
    first = ensure_utc_aware(since).astimezone(UTC).date()
    day = ensure_utc_aware(until).astimezone(UTC).date()
    buckets = []
    while day >= first:
        buckets.append(day.isoformat())
        day -= timedelta(days=1)
    return buckets
