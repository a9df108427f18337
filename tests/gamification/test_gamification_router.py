"""Tests for gamification endpoints with a mocked service."""

from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from learnhub.auth.permissions import UserRole
from learnhub.gamification.models import LeaderboardEntry, UserPoints


@pytest.fixture
def gamification_service(app) -> Mock:
    service = Mock()
    app.state.gamification_service = service
    return service


def test_my_points(client: TestClient, gamification_service, auth_headers):
    user_id = uuid4()
    gamification_service.get_user_points = AsyncMock(
        return_value=UserPoints(user_id=user_id, total_points=120, level=2)
    )

    response = client.get(
        "/v1/gamification/my-points", headers=auth_headers(user_id=user_id)
    )

    assert response.status_code == 200
    assert response.json()["total_points"] == 120
    assert response.json()["level"] == 2


def test_leaderboard_is_public_and_uses_default_limit(
    client: TestClient, gamification_service
):
    gamification_service.get_leaderboard = AsyncMock(
        return_value=[LeaderboardEntry(1, uuid4(), 500, 6)]
    )

    response = client.get("/v1/gamification/leaderboard")

    assert response.status_code == 200
    assert response.json()[0]["rank"] == 1
    gamification_service.get_leaderboard.assert_awaited_once_with(limit=10)


def test_award_requires_staff(client: TestClient, gamification_service, auth_headers):
    response = client.post(
        "/v1/gamification/award",
        json={"user_id": str(uuid4()), "activity_type": "quiz_passed"},
        headers=auth_headers(UserRole.STUDENT),
    )

    assert response.status_code == 403


def test_award_by_instructor(client: TestClient, gamification_service, auth_headers):
    user_id = uuid4()
    gamification_service.award_points = AsyncMock(
        return_value=UserPoints(user_id=user_id, total_points=25)
    )

    response = client.post(
        "/v1/gamification/award",
        json={"user_id": str(user_id), "activity_type": "quiz_passed"},
        headers=auth_headers(UserRole.INSTRUCTOR),
    )

    assert response.status_code == 200
    assert response.json()["total_points"] == 25


def test_unknown_activity_is_422(
    client: TestClient, gamification_service, auth_headers
):
    response = client.post(
        "/v1/gamification/award",
        json={"user_id": str(uuid4()), "activity_type": "bogus"},
        headers=auth_headers(UserRole.ADMIN),
    )

    assert response.status_code == 422
