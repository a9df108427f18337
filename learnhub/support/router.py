"""Support ticket API endpoints.

Provides routes for:
- Opening tickets and listing one's own
- Staff triage, listings and admin statistics
- Conversations and satisfaction ratings
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from learnhub.auth.dependencies import AdminUser, CurrentUser, StaffUser
from learnhub.core.exceptions import ServiceError

from .dependencies import SupportServiceDep, handle_support_error
from .models import TicketCategory, TicketPriority, TicketStatus
from .schemas import (
    CreateReplyRequest,
    CreateTicketRequest,
    PaginationResponse,
    RateTicketRequest,
    TicketDetailResponse,
    TicketListResponse,
    TicketReplyResponse,
    TicketResponse,
    TicketStatsResponse,
    UpdateTicketRequest,
)


router = APIRouter(prefix="/v1/support/tickets", tags=["support"])


def _to_list_response(result: dict) -> TicketListResponse:
    return TicketListResponse(
        items=[TicketResponse.from_entity(t) for t in result["items"]],
        pagination=PaginationResponse(**result["pagination"]),
    )


@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    data: CreateTicketRequest,
    service: SupportServiceDep,
    user: CurrentUser,
) -> TicketResponse:
    try:
        ticket = await service.create_ticket(
            user_id=user.id,
            subject=data.subject,
            description=data.description,
            category=data.category,
            priority=data.priority,
            attachments=data.attachments,
            tags=data.tags,
            related_course_id=data.related_course_id,
            related_order_id=data.related_order_id,
        )
        return TicketResponse.from_entity(ticket)
    except ServiceError as e:
        raise handle_support_error(e) from e


@router.get("", response_model=TicketListResponse)
async def list_tickets(
    service: SupportServiceDep,
    _staff: StaffUser,
    status_filter: TicketStatus | None = Query(None, alias="status"),
    category: TicketCategory | None = None,
    priority: TicketPriority | None = None,
    assigned_to: UUID | None = None,
    user_id: UUID | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> TicketListResponse:
    """All tickets matching the filters, newest first (staff)."""
    result = await service.find_all(
        status=status_filter,
        category=category,
        priority=priority,
        assigned_to=assigned_to,
        user_id=user_id,
        page=page,
        limit=limit,
    )
    return _to_list_response(result)


@router.get("/my-tickets", response_model=TicketListResponse)
async def list_my_tickets(
    service: SupportServiceDep,
    user: CurrentUser,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> TicketListResponse:
    return _to_list_response(
        await service.get_user_tickets(user.id, page=page, limit=limit)
    )


@router.get("/stats", response_model=TicketStatsResponse)
async def get_ticket_stats(
    service: SupportServiceDep,
    _admin: AdminUser,
) -> TicketStatsResponse:
    return TicketStatsResponse(**await service.get_ticket_stats())


@router.get("/{ticket_id}", response_model=TicketDetailResponse)
async def get_ticket(
    ticket_id: UUID,
    service: SupportServiceDep,
    user: CurrentUser,
) -> TicketDetailResponse:
    """Ticket with its replies; internal notes are shown to staff only."""
    try:
        ticket, replies = await service.get_ticket_with_replies(
            ticket_id, user.id, is_staff=user.is_staff
        )
    except ServiceError as e:
        raise handle_support_error(e) from e
    return TicketDetailResponse(
        ticket=TicketResponse.from_entity(ticket),
        replies=[TicketReplyResponse.from_entity(r) for r in replies],
    )


@router.patch("/{ticket_id}", response_model=TicketResponse)
async def update_ticket(
    ticket_id: UUID,
    data: UpdateTicketRequest,
    service: SupportServiceDep,
    _staff: StaffUser,
) -> TicketResponse:
    try:
        ticket = await service.update_ticket(
            ticket_id,
            status=data.status,
            priority=data.priority,
            assigned_to=data.assigned_to,
        )
        return TicketResponse.from_entity(ticket)
    except ServiceError as e:
        raise handle_support_error(e) from e


@router.post(
    "/{ticket_id}/reply",
    response_model=TicketReplyResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_reply(
    ticket_id: UUID,
    data: CreateReplyRequest,
    service: SupportServiceDep,
    user: CurrentUser,
) -> TicketReplyResponse:
    try:
        reply = await service.add_reply(
            ticket_id,
            user_id=user.id,
            is_staff=user.is_staff,
            message=data.message,
            attachments=data.attachments,
            is_internal=data.is_internal,
        )
        return TicketReplyResponse.from_entity(reply)
    except ServiceError as e:
        raise handle_support_error(e) from e


@router.post("/{ticket_id}/rate", response_model=TicketResponse)
async def rate_ticket(
    ticket_id: UUID,
    data: RateTicketRequest,
    service: SupportServiceDep,
    user: CurrentUser,
) -> TicketResponse:
    try:
        ticket = await service.rate_ticket(
            ticket_id, user.id, rating=data.rating, feedback=data.feedback
        )
        return TicketResponse.from_entity(ticket)
    except ServiceError as e:
        raise handle_support_error(e) from e


@router.delete("/{ticket_id}", response_model=TicketResponse)
async def close_ticket(
    ticket_id: UUID,
    service: SupportServiceDep,
    _admin: AdminUser,
) -> TicketResponse:
    """Close a ticket (admin). The ticket is kept."""
    try:
        return TicketResponse.from_entity(await service.close_ticket(ticket_id))
    except ServiceError as e:
        raise handle_support_error(e) from e
