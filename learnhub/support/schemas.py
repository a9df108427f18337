"""Pydantic schemas for support tickets."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .models import Ticket, TicketCategory, TicketPriority, TicketReply, TicketStatus


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreateTicketRequest(BaseModel):
    subject: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=10000)
    category: TicketCategory
    priority: TicketPriority = TicketPriority.MEDIUM
    attachments: list[str] = Field(default_factory=list, max_length=10)
    tags: list[str] = Field(default_factory=list, max_length=20)
    related_course_id: UUID | None = None
    related_order_id: str | None = Field(default=None, max_length=64)


class UpdateTicketRequest(BaseModel):
    """Staff triage update; omitted fields are left unchanged."""

    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    assigned_to: UUID | None = None


class CreateReplyRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=10000)
    attachments: list[str] = Field(default_factory=list, max_length=10)
    is_internal: bool = Field(default=False, description="Staff-only note")


class RateTicketRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    feedback: str | None = Field(default=None, max_length=2000)


# ==============================================================================
# Response Schemas
# ==============================================================================


class TicketResponse(BaseModel):
    ticket_id: UUID
    ticket_number: str
    user_id: UUID
    subject: str
    description: str
    category: TicketCategory
    priority: TicketPriority
    status: TicketStatus
    assigned_to: UUID | None = None
    attachments: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    related_course_id: UUID | None = None
    related_order_id: str | None = None
    resolved_at: datetime | None = None
    closed_at: datetime | None = None
    rating: int | None = None
    feedback: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, entity: Ticket) -> "TicketResponse":
        return cls(**entity.to_dict())


class TicketReplyResponse(BaseModel):
    reply_id: UUID
    ticket_id: UUID
    user_id: UUID
    message: str
    attachments: list[str] = Field(default_factory=list)
    is_staff_reply: bool
    is_internal: bool
    created_at: datetime

    @classmethod
    def from_entity(cls, entity: TicketReply) -> "TicketReplyResponse":
        return cls(**entity.to_dict())


class TicketDetailResponse(BaseModel):
    ticket: TicketResponse
    replies: list[TicketReplyResponse]


class PaginationResponse(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class TicketListResponse(BaseModel):
    items: list[TicketResponse]
    pagination: PaginationResponse


class SatisfactionResponse(BaseModel):
    average_rating: float = 0.0
    total_ratings: int = 0


class TicketStatsResponse(BaseModel):
    total: int = 0
    open: int = 0
    in_progress: int = 0
    waiting_for_customer: int = 0
    resolved: int = 0
    closed: int = 0
    average_resolution_hours: float = 0.0
    satisfaction: SatisfactionResponse = Field(default_factory=SatisfactionResponse)
