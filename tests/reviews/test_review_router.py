"""Tests for review endpoints with a mocked service."""

from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from learnhub.auth.permissions import UserRole
from learnhub.reviews.models import Review
from learnhub.reviews.service import AlreadyReviewedError, NotReviewAuthorError


@pytest.fixture
def review_service(app) -> Mock:
    service = Mock()
    app.state.review_service = service
    return service


def make_review(**kwargs) -> Review:
    values = {
        "user_id": uuid4(),
        "item_type": "course",
        "item_id": uuid4(),
        "rating": 5,
        "title": "Great",
        "comment": "Worth it",
    }
    values.update(kwargs)
    return Review(**values)


def test_create_review(client: TestClient, review_service, auth_headers):
    review = make_review()
    review_service.create_review = AsyncMock(return_value=review)

    response = client.post(
        "/v1/reviews",
        json={
            "item_type": "course",
            "item_id": str(review.item_id),
            "rating": 5,
            "title": "Great",
            "comment": "Worth it",
        },
        headers=auth_headers(),
    )

    assert response.status_code == 201
    assert response.json()["helpful_count"] == 0


def test_duplicate_review_is_409(client: TestClient, review_service, auth_headers):
    review_service.create_review = AsyncMock(side_effect=AlreadyReviewedError())

    response = client.post(
        "/v1/reviews",
        json={
            "item_type": "product",
            "item_id": str(uuid4()),
            "rating": 2,
            "title": "Meh",
            "comment": "Again",
        },
        headers=auth_headers(),
    )

    assert response.status_code == 409


def test_rating_out_of_range_is_422(client: TestClient, review_service, auth_headers):
    response = client.post(
        "/v1/reviews",
        json={
            "item_type": "course",
            "item_id": str(uuid4()),
            "rating": 6,
            "title": "Too good",
            "comment": "Off the scale",
        },
        headers=auth_headers(),
    )

    assert response.status_code == 422


def test_editing_someone_elses_review_is_403(
    client: TestClient, review_service, auth_headers
):
    review_service.update_review = AsyncMock(side_effect=NotReviewAuthorError())

    response = client.patch(
        f"/v1/reviews/{uuid4()}", json={"rating": 1}, headers=auth_headers()
    )

    assert response.status_code == 403


def test_reply_requires_staff(client: TestClient, review_service, auth_headers):
    response = client.post(
        f"/v1/reviews/{uuid4()}/reply",
        json={"reply_text": "Thanks"},
        headers=auth_headers(UserRole.STUDENT),
    )

    assert response.status_code == 403
