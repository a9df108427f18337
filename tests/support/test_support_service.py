"""Tests for SupportService against a mocked Cassandra session."""

from datetime import UTC, datetime
from types import SimpleNamespace
from uuid import uuid4

import pytest

from learnhub.core.exceptions import ConcurrentUpdateError
from learnhub.support.models import TicketCategory, format_ticket_number
from learnhub.support.service import (
    SupportService,
    TicketAccessDeniedError,
    TicketNotFoundError,
    TicketNotRateableError,
)


OWNER_ID = uuid4()


def ticket_row(**overrides) -> SimpleNamespace:
    values = {
        "ticket_id": uuid4(),
        "ticket_number": "TKT-202603-00001",
        "user_id": OWNER_ID,
        "subject": "Cannot open lesson",
        "description": "Video never loads",
        "category": "technical",
        "priority": "medium",
        "status": "open",
        "assigned_to": None,
        "attachments": None,
        "tags": None,
        "related_course_id": None,
        "related_order_id": None,
        "resolved_at": None,
        "closed_at": None,
        "rating": None,
        "feedback": None,
        "created_at": datetime(2026, 3, 1, 8),
        "updated_at": datetime(2026, 3, 1, 8),
        "version": 0,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def reply_row(ticket_id, is_internal: bool, is_staff_reply: bool = True):
    return SimpleNamespace(
        ticket_id=ticket_id,
        reply_id=uuid4(),
        user_id=uuid4(),
        message="note",
        attachments=None,
        is_staff_reply=is_staff_reply,
        is_internal=is_internal,
        created_at=datetime(2026, 3, 1, 9),
    )


@pytest.fixture
def service(mock_session) -> SupportService:
    return SupportService(mock_session, "test_ks", ticket_number_prefix="TKT")


def test_ticket_number_format() -> None:
    moment = datetime(2026, 3, 15, tzinfo=UTC)
    assert format_ticket_number("TKT", moment, 42) == "TKT-202603-00042"


class TestCreateTicket:
    @pytest.mark.asyncio
    async def test_first_ticket_starts_sequence(
        self, service, mock_session, make_result
    ) -> None:
        mock_session.aexecute.side_effect = [
            make_result([]),
            make_result(applied=True),
            make_result(),
            make_result(),
        ]

        ticket = await service.create_ticket(
            OWNER_ID, "Billing", "Charged twice", TicketCategory.BILLING
        )

        assert ticket.ticket_number.startswith("TKT-")
        assert ticket.ticket_number.endswith("-00001")
        assert ticket.status == "open"
        assert ticket.priority == "medium"

    @pytest.mark.asyncio
    async def test_sequence_advances_after_lost_race(
        self, service, mock_session, make_result
    ) -> None:
        mock_session.aexecute.side_effect = [
            make_result([SimpleNamespace(last_number=6)]),
            make_result(applied=False),
            make_result([SimpleNamespace(last_number=7)]),
            make_result(applied=True),
            make_result(),
            make_result(),
        ]

        ticket = await service.create_ticket(
            OWNER_ID, "Login", "Locked out", "account"
        )

        assert ticket.ticket_number.endswith("-00008")
        advance_params = mock_session.aexecute.await_args_list[3].args[1]
        assert advance_params == [8, "tickets", 7]

    @pytest.mark.asyncio
    async def test_sequence_exhausted(self, mock_session, make_result) -> None:
        service = SupportService(mock_session, "test_ks", max_retries=1)
        mock_session.aexecute.side_effect = [
            make_result([SimpleNamespace(last_number=1)]),
            make_result(applied=False),
        ]

        with pytest.raises(ConcurrentUpdateError):
            await service.create_ticket(OWNER_ID, "x", "y", "other")


class TestTicketAccess:
    @pytest.mark.asyncio
    async def test_customer_does_not_see_internal_notes(
        self, service, mock_session, make_result
    ) -> None:
        row = ticket_row()
        mock_session.aexecute.side_effect = [
            make_result([row]),
            make_result(
                [
                    reply_row(row.ticket_id, is_internal=True),
                    reply_row(row.ticket_id, is_internal=False),
                ]
            ),
        ]

        _, replies = await service.get_ticket_with_replies(
            row.ticket_id, OWNER_ID, is_staff=False
        )

        assert len(replies) == 1
        assert replies[0].is_internal is False

    @pytest.mark.asyncio
    async def test_staff_sees_everything(
        self, service, mock_session, make_result
    ) -> None:
        row = ticket_row()
        mock_session.aexecute.side_effect = [
            make_result([row]),
            make_result(
                [
                    reply_row(row.ticket_id, is_internal=True),
                    reply_row(row.ticket_id, is_internal=False),
                ]
            ),
        ]

        _, replies = await service.get_ticket_with_replies(
            row.ticket_id, uuid4(), is_staff=True
        )

        assert len(replies) == 2

    @pytest.mark.asyncio
    async def test_other_customer_denied(
        self, service, mock_session, make_result
    ) -> None:
        mock_session.aexecute.return_value = make_result([ticket_row()])

        with pytest.raises(TicketAccessDeniedError):
            await service.get_ticket_with_replies(uuid4(), uuid4(), is_staff=False)

    @pytest.mark.asyncio
    async def test_missing_ticket(self, service, mock_session, make_result) -> None:
        mock_session.aexecute.return_value = make_result([])

        with pytest.raises(TicketNotFoundError):
            await service.get_ticket(uuid4())


class TestReplies:
    @pytest.mark.asyncio
    async def test_customer_reply_resumes_waiting_ticket(
        self, service, mock_session, make_result
    ) -> None:
        row = ticket_row(status="waiting_for_customer", version=2)
        mock_session.aexecute.side_effect = [
            make_result([row]),
            make_result(),
            make_result([row]),
            make_result(applied=True),
        ]

        reply = await service.add_reply(
            row.ticket_id, OWNER_ID, is_staff=False, message="Here are the logs"
        )

        assert reply.is_staff_reply is False
        cas_params = mock_session.aexecute.await_args_list[3].args[1]
        assert cas_params[0] == "in_progress"
        assert cas_params[-1] == 2

    @pytest.mark.asyncio
    async def test_customer_cannot_post_internal_note(
        self, service, mock_session, make_result
    ) -> None:
        row = ticket_row()
        mock_session.aexecute.side_effect = [make_result([row]), make_result()]

        reply = await service.add_reply(
            row.ticket_id, OWNER_ID, is_staff=False, message="hi", is_internal=True
        )

        assert reply.is_internal is False
        assert mock_session.aexecute.await_count == 2

    @pytest.mark.asyncio
    async def test_staff_internal_note(
        self, service, mock_session, make_result
    ) -> None:
        row = ticket_row(status="waiting_for_customer")
        mock_session.aexecute.side_effect = [make_result([row]), make_result()]

        reply = await service.add_reply(
            row.ticket_id, uuid4(), is_staff=True, message="Escalate", is_internal=True
        )

        assert reply.is_internal is True
        assert reply.is_staff_reply is True
        # Staff replies never change the status
        assert mock_session.aexecute.await_count == 2


class TestRating:
    @pytest.mark.asyncio
    async def test_open_ticket_not_rateable(
        self, service, mock_session, make_result
    ) -> None:
        mock_session.aexecute.return_value = make_result([ticket_row(status="open")])

        with pytest.raises(TicketNotRateableError):
            await service.rate_ticket(uuid4(), OWNER_ID, 5)

    @pytest.mark.asyncio
    async def test_only_owner_rates(self, service, mock_session, make_result) -> None:
        mock_session.aexecute.return_value = make_result(
            [ticket_row(status="resolved")]
        )

        with pytest.raises(TicketAccessDeniedError):
            await service.rate_ticket(uuid4(), uuid4(), 5)

    @pytest.mark.asyncio
    async def test_resolved_ticket_rated(
        self, service, mock_session, make_result
    ) -> None:
        mock_session.aexecute.side_effect = [
            make_result([ticket_row(status="resolved")]),
            make_result(applied=True),
        ]

        ticket = await service.rate_ticket(uuid4(), OWNER_ID, 4, feedback="Quick fix")

        assert ticket.rating == 4
        assert ticket.feedback == "Quick fix"


class TestTriage:
    @pytest.mark.asyncio
    async def test_resolving_stamps_resolved_at(
        self, service, mock_session, make_result
    ) -> None:
        mock_session.aexecute.side_effect = [
            make_result([ticket_row()]),
            make_result(applied=True),
        ]

        ticket = await service.update_ticket(uuid4(), status="resolved")

        assert ticket.status == "resolved"
        assert ticket.resolved_at is not None

    @pytest.mark.asyncio
    async def test_stats(self, service, mock_session, make_result) -> None:
        mock_session.aexecute.return_value = make_result(
            [
                ticket_row(
                    status="resolved",
                    resolved_at=datetime(2026, 3, 1, 12),
                    rating=5,
                ),
                ticket_row(
                    status="closed",
                    resolved_at=datetime(2026, 3, 1, 10),
                    closed_at=datetime(2026, 3, 2),
                    rating=3,
                ),
                ticket_row(status="open"),
            ]
        )

        stats = await service.get_ticket_stats()

        assert stats["total"] == 3
        assert stats["open"] == 1
        assert stats["resolved"] == 1
        assert stats["closed"] == 1
        assert stats["in_progress"] == 0
        assert stats["average_resolution_hours"] == 3.0
        assert stats["satisfaction"] == {"average_rating": 4.0, "total_ratings": 2}

    @pytest.mark.asyncio
    async def test_find_all_filters_and_pages(
        self, service, mock_session, make_result
    ) -> None:
        rows = [
            ticket_row(status="open", created_at=datetime(2026, 3, day))
            for day in range(1, 4)
        ]
        rows.append(ticket_row(status="closed"))
        mock_session.aexecute.return_value = make_result(rows)

        result = await service.find_all(status="open", page=1, limit=2)

        assert result["pagination"] == {
            "total": 3,
            "page": 1,
            "limit": 2,
            "total_pages": 2,
        }
        assert [t.created_at.day for t in result["items"]] == [3, 2]
