# ruff: noqa: S608
"""Support ticket service layer.

Business logic for:
- Ticket creation with sequential ticket numbers
- Staff triage (status, priority, assignment) and closing
- Customer and staff replies, including internal staff notes
- Satisfaction ratings and support statistics

Ticket rows change through compare-and-set on ``version``; ticket numbers
come from a counter row advanced the same way.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog
from cassandra.util import uuid_from_time

from learnhub.core.exceptions import (
    ConcurrentUpdateError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
)
from learnhub.utils import page_offset, total_pages

from .models import (
    RATEABLE_STATUSES,
    TICKET_SEQUENCE_NAME,
    Ticket,
    TicketCategory,
    TicketPriority,
    TicketReply,
    TicketStatus,
    format_ticket_number,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)

DEFAULT_MAX_RETRIES = 5


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class TicketNotFoundError(NotFoundError):
    def __init__(self, message: str = "Ticket not found"):
        super().__init__(message, "ticket_not_found")


class TicketAccessDeniedError(ForbiddenError):
    def __init__(self, message: str = "You can only access your own tickets"):
        super().__init__(message, "ticket_access_denied")


class TicketNotRateableError(InvalidStateError):
    def __init__(self, message: str = "Only resolved or closed tickets can be rated"):
        super().__init__(message, "ticket_not_rateable")


# ==============================================================================
# Support Service
# ==============================================================================


class SupportService:
    """Service for support tickets and their conversations."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        ticket_number_prefix: str = "TKT",
        max_retries: int = DEFAULT_MAX_RETRIES,
    ):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self.ticket_number_prefix = ticket_number_prefix
        self.max_retries = max_retries
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        # Tickets
        self._get_ticket = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.support_tickets WHERE ticket_id = ?
        """)

        self._get_all_tickets = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.support_tickets
        """)

        self._insert_ticket = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.support_tickets
            (ticket_id, ticket_number, user_id, subject, description, category,
             priority, status, attachments, tags, related_course_id,
             related_order_id, created_at, updated_at, version)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._cas_update_ticket = self.session.prepare(f"""
            UPDATE {self.keyspace}.support_tickets
            SET status = ?, priority = ?, assigned_to = ?, resolved_at = ?,
                closed_at = ?, rating = ?, feedback = ?, updated_at = ?,
                version = ?
            WHERE ticket_id = ?
            IF version = ?
        """)

        self._insert_user_ticket = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.tickets_by_user
            (user_id, created_at, ticket_id)
            VALUES (?, ?, ?)
        """)

        self._get_user_tickets = self.session.prepare(f"""
            SELECT ticket_id FROM {self.keyspace}.tickets_by_user
            WHERE user_id = ?
        """)

        # Replies
        self._insert_reply = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.ticket_replies
            (ticket_id, reply_id, user_id, message, attachments,
             is_staff_reply, is_internal, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._get_replies = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.ticket_replies WHERE ticket_id = ?
        """)

        # Ticket numbers
        self._get_sequence = self.session.prepare(f"""
            SELECT last_number FROM {self.keyspace}.ticket_sequences
            WHERE name = ?
        """)

        self._create_sequence = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.ticket_sequences (name, last_number)
            VALUES (?, 1)
            IF NOT EXISTS
        """)

        self._advance_sequence = self.session.prepare(f"""
            UPDATE {self.keyspace}.ticket_sequences
            SET last_number = ?
            WHERE name = ?
            IF last_number = ?
        """)

    # ==========================================================================
    # Helpers
    # ==========================================================================

    async def _next_ticket_sequence(self) -> int:
        """Allocate the next ticket number; each value is handed out once."""
        for _ in range(self.max_retries):
            result = await self.session.aexecute(
                self._get_sequence, [TICKET_SEQUENCE_NAME]
            )
            row = result.one()

            if row is None:
                created = await self.session.aexecute(
                    self._create_sequence, [TICKET_SEQUENCE_NAME]
                )
                if created.was_applied:
                    return 1
                continue

            current = row.last_number
            advanced = await self.session.aexecute(
                self._advance_sequence,
                [current + 1, TICKET_SEQUENCE_NAME, current],
            )
            if advanced.was_applied:
                return current + 1

        raise ConcurrentUpdateError("Could not allocate a ticket number, please retry")

    async def find_ticket(self, ticket_id: UUID) -> Ticket | None:
        result = await self.session.aexecute(self._get_ticket, [ticket_id])
        row = result.one()
        return Ticket.from_row(row) if row else None

    async def get_ticket(self, ticket_id: UUID) -> Ticket:
        ticket = await self.find_ticket(ticket_id)
        if ticket is None:
            raise TicketNotFoundError
        return ticket

    async def _mutate(
        self, ticket_id: UUID, change: Callable[[Ticket], None]
    ) -> Ticket:
        """Read, apply ``change`` and write back conditionally on version."""
        for attempt in range(1, self.max_retries + 1):
            ticket = await self.get_ticket(ticket_id)
            expected = ticket.version

            change(ticket)
            ticket.updated_at = datetime.now(UTC)
            ticket.version = expected + 1

            result = await self.session.aexecute(
                self._cas_update_ticket,
                [
                    ticket.status,
                    ticket.priority,
                    ticket.assigned_to,
                    ticket.resolved_at,
                    ticket.closed_at,
                    ticket.rating,
                    ticket.feedback,
                    ticket.updated_at,
                    ticket.version,
                    ticket_id,
                    expected,
                ],
            )
            if result.was_applied:
                return ticket

            logger.debug(
                "ticket_write_conflict", ticket_id=str(ticket_id), attempt=attempt
            )

        raise ConcurrentUpdateError

    @staticmethod
    def _paginate(tickets: list[Ticket], page: int, limit: int) -> dict[str, Any]:
        total = len(tickets)
        offset = page_offset(page, limit)
        return {
            "items": tickets[offset : offset + limit],
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "total_pages": total_pages(total, limit),
            },
        }

    # ==========================================================================
    # Tickets
    # ==========================================================================

    async def create_ticket(
        self,
        user_id: UUID,
        subject: str,
        description: str,
        category: TicketCategory,
        priority: TicketPriority = TicketPriority.MEDIUM,
        attachments: list[str] | None = None,
        tags: list[str] | None = None,
        related_course_id: UUID | None = None,
        related_order_id: str | None = None,
    ) -> Ticket:
        """Open a new ticket with the next ticket number."""
        now = datetime.now(UTC)
        number = await self._next_ticket_sequence()

        ticket = Ticket(
            ticket_number=format_ticket_number(self.ticket_number_prefix, now, number),
            user_id=user_id,
            subject=subject,
            description=description,
            category=TicketCategory(category).value,
            priority=TicketPriority(priority).value,
            attachments=attachments,
            tags=tags,
            related_course_id=related_course_id,
            related_order_id=related_order_id,
            created_at=now,
            updated_at=now,
        )

        await self.session.aexecute(
            self._insert_ticket,
            [
                ticket.ticket_id,
                ticket.ticket_number,
                ticket.user_id,
                ticket.subject,
                ticket.description,
                ticket.category,
                ticket.priority,
                ticket.status,
                ticket.attachments,
                ticket.tags,
                ticket.related_course_id,
                ticket.related_order_id,
                ticket.created_at,
                ticket.updated_at,
                ticket.version,
            ],
        )
        await self.session.aexecute(
            self._insert_user_ticket,
            [ticket.user_id, ticket.created_at, ticket.ticket_id],
        )

        logger.info(
            "ticket_created",
            ticket_id=str(ticket.ticket_id),
            ticket_number=ticket.ticket_number,
            category=ticket.category,
            priority=ticket.priority,
        )
        return ticket

    async def find_all(
        self,
        status: TicketStatus | None = None,
        category: TicketCategory | None = None,
        priority: TicketPriority | None = None,
        assigned_to: UUID | None = None,
        user_id: UUID | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict[str, Any]:
        """Filtered ticket listing for staff, newest first."""
        rows = await self.session.aexecute(self._get_all_tickets)
        tickets = [Ticket.from_row(row) for row in rows]

        if status is not None:
            tickets = [t for t in tickets if t.status == TicketStatus(status).value]
        if category is not None:
            tickets = [
                t for t in tickets if t.category == TicketCategory(category).value
            ]
        if priority is not None:
            tickets = [
                t for t in tickets if t.priority == TicketPriority(priority).value
            ]
        if assigned_to is not None:
            tickets = [t for t in tickets if t.assigned_to == assigned_to]
        if user_id is not None:
            tickets = [t for t in tickets if t.user_id == user_id]

        tickets.sort(key=lambda t: t.created_at, reverse=True)
        return self._paginate(tickets, page, limit)

    async def get_user_tickets(
        self, user_id: UUID, page: int = 1, limit: int = 20
    ) -> dict[str, Any]:
        """A customer's own tickets, newest first."""
        rows = await self.session.aexecute(self._get_user_tickets, [user_id])
        tickets = []
        for row in rows:
            ticket = await self.find_ticket(row.ticket_id)
            if ticket is not None:
                tickets.append(ticket)
        tickets.sort(key=lambda t: t.created_at, reverse=True)
        return self._paginate(tickets, page, limit)

    async def get_ticket_with_replies(
        self, ticket_id: UUID, user_id: UUID, is_staff: bool
    ) -> tuple[Ticket, list[TicketReply]]:
        """Ticket and its conversation as the caller may see it.

        Raises:
            TicketNotFoundError: If the ticket does not exist
            TicketAccessDeniedError: If a customer asks for someone else's ticket
        """
        ticket = await self.get_ticket(ticket_id)
        if not is_staff and ticket.user_id != user_id:
            raise TicketAccessDeniedError

        rows = await self.session.aexecute(self._get_replies, [ticket_id])
        replies = [TicketReply.from_row(row) for row in rows]
        if not is_staff:
            # Internal notes are staff-only
            replies = [r for r in replies if not r.is_internal]
        return ticket, replies

    async def update_ticket(
        self,
        ticket_id: UUID,
        status: TicketStatus | None = None,
        priority: TicketPriority | None = None,
        assigned_to: UUID | None = None,
    ) -> Ticket:
        """Staff triage: status, priority and assignee."""

        def change(ticket: Ticket) -> None:
            if status is not None:
                ticket.set_status(status)
            if priority is not None:
                ticket.priority = TicketPriority(priority).value
            if assigned_to is not None:
                ticket.assigned_to = assigned_to

        ticket = await self._mutate(ticket_id, change)
        logger.info(
            "ticket_updated",
            ticket_id=str(ticket_id),
            status=ticket.status,
            priority=ticket.priority,
        )
        return ticket

    async def close_ticket(self, ticket_id: UUID) -> Ticket:
        ticket = await self._mutate(
            ticket_id, lambda t: t.set_status(TicketStatus.CLOSED)
        )
        logger.info("ticket_closed", ticket_id=str(ticket_id))
        return ticket

    # ==========================================================================
    # Replies and Ratings
    # ==========================================================================

    async def add_reply(
        self,
        ticket_id: UUID,
        user_id: UUID,
        is_staff: bool,
        message: str,
        attachments: list[str] | None = None,
        is_internal: bool = False,
    ) -> TicketReply:
        """Add a message to a ticket.

        A customer reply to a ticket waiting on them moves it back to
        in progress. Only staff can post internal notes.

        Raises:
            TicketNotFoundError: If the ticket does not exist
            TicketAccessDeniedError: If a customer replies to someone else's ticket
        """
        ticket = await self.get_ticket(ticket_id)
        if not is_staff and ticket.user_id != user_id:
            raise TicketAccessDeniedError

        now = datetime.now(UTC)
        reply = TicketReply(
            ticket_id=ticket_id,
            reply_id=uuid_from_time(now),
            user_id=user_id,
            message=message,
            attachments=attachments,
            is_staff_reply=is_staff,
            is_internal=is_internal and is_staff,
            created_at=now,
        )
        await self.session.aexecute(
            self._insert_reply,
            [
                reply.ticket_id,
                reply.reply_id,
                reply.user_id,
                reply.message,
                reply.attachments,
                reply.is_staff_reply,
                reply.is_internal,
                reply.created_at,
            ],
        )

        if not is_staff and ticket.status == TicketStatus.WAITING_FOR_CUSTOMER.value:

            def resume(current: Ticket) -> None:
                if current.status == TicketStatus.WAITING_FOR_CUSTOMER.value:
                    current.status = TicketStatus.IN_PROGRESS.value

            await self._mutate(ticket_id, resume)

        logger.info(
            "ticket_reply_added",
            ticket_id=str(ticket_id),
            is_staff_reply=reply.is_staff_reply,
            is_internal=reply.is_internal,
        )
        return reply

    async def rate_ticket(
        self,
        ticket_id: UUID,
        user_id: UUID,
        rating: int,
        feedback: str | None = None,
    ) -> Ticket:
        """Record the customer's satisfaction rating.

        Raises:
            TicketNotFoundError: If the ticket does not exist
            TicketAccessDeniedError: If the caller did not open the ticket
            TicketNotRateableError: If the ticket is not resolved or closed
        """

        def change(ticket: Ticket) -> None:
            if ticket.user_id != user_id:
                raise TicketAccessDeniedError("You can only rate your own tickets")
            if ticket.status not in RATEABLE_STATUSES:
                raise TicketNotRateableError
            ticket.rating = rating
            if feedback:
                ticket.feedback = feedback

        ticket = await self._mutate(ticket_id, change)
        logger.info("ticket_rated", ticket_id=str(ticket_id), rating=rating)
        return ticket

    # ==========================================================================
    # Statistics
    # ==========================================================================

    async def get_ticket_stats(self) -> dict[str, Any]:
        """Ticket counts by status, mean resolution time and satisfaction."""
        rows = await self.session.aexecute(self._get_all_tickets)
        tickets = [Ticket.from_row(row) for row in rows]

        by_status = {s.value: 0 for s in TicketStatus}
        for ticket in tickets:
            by_status[ticket.status] = by_status.get(ticket.status, 0) + 1

        hours = [t.resolution_hours for t in tickets if t.resolved_at is not None]
        ratings = [t.rating for t in tickets if t.rating is not None]

        return {
            "total": len(tickets),
            **by_status,
            "average_resolution_hours": sum(hours) / len(hours) if hours else 0.0,
            "satisfaction": {
                "average_rating": sum(ratings) / len(ratings) if ratings else 0.0,
                "total_ratings": len(ratings),
            },
        }
