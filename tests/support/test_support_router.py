"""Tests for support ticket endpoints with a mocked service."""

from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from learnhub.auth.permissions import UserRole
from learnhub.support.models import Ticket
from learnhub.support.service import TicketNotRateableError


@pytest.fixture
def support_service(app) -> Mock:
    service = Mock()
    app.state.support_service = service
    return service


def make_ticket(**kwargs) -> Ticket:
    values = {
        "ticket_number": "TKT-202603-00007",
        "user_id": uuid4(),
        "subject": "Refund",
        "description": "Bought the wrong course",
        "category": "refund",
    }
    values.update(kwargs)
    return Ticket(**values)


def test_open_ticket(client: TestClient, support_service, auth_headers):
    ticket = make_ticket()
    support_service.create_ticket = AsyncMock(return_value=ticket)

    response = client.post(
        "/v1/support/tickets",
        json={
            "subject": "Refund",
            "description": "Bought the wrong course",
            "category": "refund",
        },
        headers=auth_headers(user_id=ticket.user_id),
    )

    assert response.status_code == 201
    assert response.json()["ticket_number"] == "TKT-202603-00007"
    assert response.json()["status"] == "open"


def test_staff_listing_forbidden_to_students(
    client: TestClient, support_service, auth_headers
):
    response = client.get("/v1/support/tickets", headers=auth_headers())
    assert response.status_code == 403


def test_stats_require_admin(client: TestClient, support_service, auth_headers):
    response = client.get(
        "/v1/support/tickets/stats", headers=auth_headers(UserRole.INSTRUCTOR)
    )
    assert response.status_code == 403


def test_rating_open_ticket_is_400(client: TestClient, support_service, auth_headers):
    support_service.rate_ticket = AsyncMock(side_effect=TicketNotRateableError())

    response = client.post(
        f"/v1/support/tickets/{uuid4()}/rate",
        json={"rating": 5},
        headers=auth_headers(),
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Only resolved or closed tickets can be rated"
