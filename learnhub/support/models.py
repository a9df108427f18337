"""Database models for support tickets.

Cassandra table definitions for:
- Support tickets: full ticket by ID, mutated with compare-and-set on version
- Tickets by user: newest-first lookup of a customer's tickets
- Ticket replies: conversation per ticket, oldest first
- Ticket sequences: counter row for human-readable ticket numbers
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from learnhub.utils import ensure_utc_aware


class TicketStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    WAITING_FOR_CUSTOMER = "waiting_for_customer"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TicketCategory(str, Enum):
    TECHNICAL = "technical"
    BILLING = "billing"
    COURSE_CONTENT = "course_content"
    ACCOUNT = "account"
    REFUND = "refund"
    FEATURE_REQUEST = "feature_request"
    BUG_REPORT = "bug_report"
    OTHER = "other"


# Statuses a customer may rate
RATEABLE_STATUSES = frozenset({TicketStatus.RESOLVED.value, TicketStatus.CLOSED.value})

TICKET_SEQUENCE_NAME = "tickets"


def format_ticket_number(prefix: str, moment: datetime, number: int) -> str:
    """``TKT-202406-00042`` style ticket number."""
    return f"{prefix}-{moment:%Y%m}-{number:05d}"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

SUPPORT_TICKETS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.support_tickets (
    ticket_id UUID PRIMARY KEY,
    ticket_number TEXT,
    user_id UUID,
    subject TEXT,
    description TEXT,
    category TEXT,
    priority TEXT,
    status TEXT,
    assigned_to UUID,
    attachments LIST<TEXT>,
    tags LIST<TEXT>,
    related_course_id UUID,
    related_order_id TEXT,
    resolved_at TIMESTAMP,
    closed_at TIMESTAMP,
    rating INT,
    feedback TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    version INT
)
"""

TICKETS_BY_USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.tickets_by_user (
    user_id UUID,
    created_at TIMESTAMP,
    ticket_id UUID,
    PRIMARY KEY ((user_id), created_at, ticket_id)
) WITH CLUSTERING ORDER BY (created_at DESC, ticket_id ASC)
"""

TICKET_REPLIES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.ticket_replies (
    ticket_id UUID,
    reply_id TIMEUUID,
    user_id UUID,
    message TEXT,
    attachments LIST<TEXT>,
    is_staff_reply BOOLEAN,
    is_internal BOOLEAN,
    created_at TIMESTAMP,
    PRIMARY KEY ((ticket_id), reply_id)
) WITH CLUSTERING ORDER BY (reply_id ASC)
"""

TICKET_SEQUENCES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.ticket_sequences (
    name TEXT PRIMARY KEY,
    last_number INT
)
"""

SUPPORT_TABLES_CQL = [
    SUPPORT_TICKETS_TABLE_CQL,
    TICKETS_BY_USER_TABLE_CQL,
    TICKET_REPLIES_TABLE_CQL,
    TICKET_SEQUENCES_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class Ticket:
    """A customer support ticket."""

    def __init__(
        self,
        ticket_number: str,
        user_id: UUID,
        subject: str,
        description: str,
        category: str,
        priority: str = TicketPriority.MEDIUM.value,
        status: str = TicketStatus.OPEN.value,
        ticket_id: UUID | None = None,
        assigned_to: UUID | None = None,
        attachments: list[str] | None = None,
        tags: list[str] | None = None,
        related_course_id: UUID | None = None,
        related_order_id: str | None = None,
        resolved_at: datetime | None = None,
        closed_at: datetime | None = None,
        rating: int | None = None,
        feedback: str | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        version: int = 0,
    ):
        now = datetime.now(UTC)
        self.ticket_id = ticket_id or uuid4()
        self.ticket_number = ticket_number
        self.user_id = user_id
        self.subject = subject
        self.description = description
        self.category = category
        self.priority = priority
        self.status = status
        self.assigned_to = assigned_to
        self.attachments = list(attachments or [])
        self.tags = list(tags or [])
        self.related_course_id = related_course_id
        self.related_order_id = related_order_id
        self.resolved_at = ensure_utc_aware(resolved_at)
        self.closed_at = ensure_utc_aware(closed_at)
        self.rating = rating
        self.feedback = feedback
        self.created_at = ensure_utc_aware(created_at) or now
        self.updated_at = ensure_utc_aware(updated_at) or now
        self.version = version

    def set_status(self, status: str, now: datetime | None = None) -> None:
        """Change status, stamping resolved_at / closed_at on those states."""
        now = now or datetime.now(UTC)
        self.status = TicketStatus(status).value
        if self.status == TicketStatus.RESOLVED.value:
            self.resolved_at = now
        elif self.status == TicketStatus.CLOSED.value:
            self.closed_at = now

    @property
    def resolution_hours(self) -> float | None:
        if self.resolved_at is None:
            return None
        return (self.resolved_at - self.created_at).total_seconds() / 3600

    @classmethod
    def from_row(cls, row: Any) -> "Ticket":
        """Create Ticket instance from Cassandra row."""
        return cls(
            ticket_id=row.ticket_id,
            ticket_number=row.ticket_number,
            user_id=row.user_id,
            subject=row.subject,
            description=row.description,
            category=row.category,
            priority=row.priority or TicketPriority.MEDIUM.value,
            status=row.status or TicketStatus.OPEN.value,
            assigned_to=row.assigned_to,
            attachments=row.attachments,
            tags=row.tags,
            related_course_id=row.related_course_id,
            related_order_id=row.related_order_id,
            resolved_at=row.resolved_at,
            closed_at=row.closed_at,
            rating=row.rating,
            feedback=row.feedback,
            created_at=row.created_at,
            updated_at=row.updated_at,
            version=row.version or 0,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "ticket_id": self.ticket_id,
            "ticket_number": self.ticket_number,
            "user_id": self.user_id,
            "subject": self.subject,
            "description": self.description,
            "category": self.category,
            "priority": self.priority,
            "status": self.status,
            "assigned_to": self.assigned_to,
            "attachments": self.attachments,
            "tags": self.tags,
            "related_course_id": self.related_course_id,
            "related_order_id": self.related_order_id,
            "resolved_at": self.resolved_at,
            "closed_at": self.closed_at,
            "rating": self.rating,
            "feedback": self.feedback,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<Ticket {self.ticket_number} {self.status}>"


class TicketReply:
    def __init__(
        self,
        ticket_id: UUID,
        reply_id: UUID,
        user_id: UUID,
        message: str,
        attachments: list[str] | None = None,
        is_staff_reply: bool = False,
        is_internal: bool = False,
        created_at: datetime | None = None,
    ):
        self.ticket_id = ticket_id
        self.reply_id = reply_id
        self.user_id = user_id
        self.message = message
        self.attachments = list(attachments or [])
        self.is_staff_reply = is_staff_reply
        self.is_internal = is_internal
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "TicketReply":
        return cls(
            ticket_id=row.ticket_id,
            reply_id=row.reply_id,
            user_id=row.user_id,
            message=row.message,
            attachments=row.attachments,
            is_staff_reply=bool(row.is_staff_reply),
            is_internal=bool(row.is_internal),
            created_at=row.created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "reply_id": self.reply_id,
            "ticket_id": self.ticket_id,
            "user_id": self.user_id,
            "message": self.message,
            "attachments": self.attachments,
            "is_staff_reply": self.is_staff_reply,
            "is_internal": self.is_internal,
            "created_at": self.created_at,
        }
