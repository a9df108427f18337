"""Security event API endpoints (admin only)."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from learnhub.auth.dependencies import AdminUser
from learnhub.core.exceptions import ServiceError

from .dependencies import SecurityLogServiceDep, handle_security_log_error
from .models import ThreatLevel
from .schemas import (
    BlockedIPsResponse,
    ResolveEventRequest,
    SecurityEventResponse,
    SecurityMetricsResponse,
)


router = APIRouter(prefix="/v1/security", tags=["security"])


@router.get("/rate-limit-violations", response_model=list[SecurityEventResponse])
async def get_rate_limit_violations(
    service: SecurityLogServiceDep,
    _admin: AdminUser,
    hours: int = Query(24, ge=1, le=24 * 30),
) -> list[SecurityEventResponse]:
    """Rate limit violations in the last N hours (at most 100)."""
    events = await service.get_rate_limit_violations(hours=hours)
    return [SecurityEventResponse.from_entity(e) for e in events]


@router.get("/blocked-ips", response_model=BlockedIPsResponse)
async def get_blocked_ips(
    service: SecurityLogServiceDep,
    _admin: AdminUser,
    hours: int = Query(24, ge=1, le=24 * 30),
) -> BlockedIPsResponse:
    ips = await service.get_blocked_ips(hours=hours)
    return BlockedIPsResponse(ip_addresses=ips, hours=hours)


@router.get("/threats/ip/{ip_address}", response_model=list[SecurityEventResponse])
async def get_threats_by_ip(
    ip_address: str,
    service: SecurityLogServiceDep,
    _admin: AdminUser,
    days: int = Query(7, ge=1, le=90),
) -> list[SecurityEventResponse]:
    events = await service.get_threats_by_ip(ip_address, days=days)
    return [SecurityEventResponse.from_entity(e) for e in events]


@router.get("/metrics", response_model=SecurityMetricsResponse)
async def get_security_metrics(
    service: SecurityLogServiceDep,
    _admin: AdminUser,
    days: int = Query(30, ge=1, le=90),
) -> SecurityMetricsResponse:
    metrics = await service.get_security_metrics(days=days)
    return SecurityMetricsResponse(**metrics)


@router.get("/threats/unresolved", response_model=list[SecurityEventResponse])
async def get_unresolved_threats(
    service: SecurityLogServiceDep,
    _admin: AdminUser,
    threat_level: ThreatLevel | None = None,
) -> list[SecurityEventResponse]:
    """Unresolved events, newest first (at most 50)."""
    events = await service.get_unresolved_threats(threat_level=threat_level)
    return [SecurityEventResponse.from_entity(e) for e in events]


@router.post("/events/{event_id}/resolve", status_code=status.HTTP_204_NO_CONTENT)
async def resolve_event(
    event_id: UUID,
    data: ResolveEventRequest,
    service: SecurityLogServiceDep,
    admin: AdminUser,
) -> None:
    try:
        await service.resolve_event(
            event_id, resolved_by=str(admin.id), notes=data.notes
        )
    except ServiceError as e:
        raise handle_security_log_error(e) from e
