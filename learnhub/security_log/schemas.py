"""Pydantic schemas for security event queries."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from .models import SecurityEvent, SecurityEventType, ThreatLevel


class SecurityEventResponse(BaseModel):
    """Security event response."""

    event_id: UUID
    event_type: SecurityEventType
    threat_level: ThreatLevel
    ip_address: str
    description: str
    user_id: str | None = None
    endpoint: str | None = None
    method: str | None = None
    payload: Any = None
    user_agent: str | None = None
    resolved: bool = False
    resolved_at: datetime | None = None
    resolved_by: str | None = None
    notes: str | None = None
    created_at: datetime

    @classmethod
    def from_entity(cls, entity: SecurityEvent) -> "SecurityEventResponse":
        """Create response from entity."""
        return cls(**entity.to_dict())


class SecurityMetricsResponse(BaseModel):
    """Aggregated security metrics for a period."""

    total_events: int
    events_by_type: dict[str, int]
    events_by_threat: dict[str, int]
    unresolved_critical: int
    period: str


class BlockedIPsResponse(BaseModel):
    ip_addresses: list[str]
    hours: int


class ResolveEventRequest(BaseModel):
    """Request to mark a security event as reviewed."""

    notes: str | None = Field(default=None, max_length=2000)
