"""Tests for enrollment endpoints with a mocked service."""

from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from learnhub.auth.permissions import UserRole
from learnhub.enrollments.models import Enrollment
from learnhub.enrollments.service import (
    AlreadyEnrolledError,
    CannotUnenrollCompletedError,
)


@pytest.fixture
def enrollment_service(app) -> Mock:
    service = Mock()
    app.state.enrollment_service = service
    return service


def test_enroll_returns_201(client: TestClient, enrollment_service, auth_headers):
    user_id, course_id = uuid4(), uuid4()
    enrollment_service.enroll = AsyncMock(
        return_value=Enrollment(student_id=user_id, course_id=course_id)
    )

    response = client.post(
        "/v1/enrollments",
        json={"course_id": str(course_id)},
        headers=auth_headers(user_id=user_id),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "active"
    assert body["progress"] == 0
    enrollment_service.enroll.assert_awaited_once_with(
        student_id=user_id, course_id=course_id, order_id=None
    )


def test_duplicate_enroll_is_409(client: TestClient, enrollment_service, auth_headers):
    enrollment_service.enroll = AsyncMock(side_effect=AlreadyEnrolledError())

    response = client.post(
        "/v1/enrollments", json={"course_id": str(uuid4())}, headers=auth_headers()
    )

    assert response.status_code == 409
    assert response.json()["message"] == "Already enrolled in this course"


def test_unenroll_completed_is_400(
    client: TestClient, enrollment_service, auth_headers
):
    enrollment_service.unenroll = AsyncMock(
        side_effect=CannotUnenrollCompletedError()
    )

    response = client.delete(
        f"/v1/enrollments/course/{uuid4()}", headers=auth_headers()
    )

    assert response.status_code == 400


def test_progress_over_100_is_rejected(
    client: TestClient, enrollment_service, auth_headers
):
    response = client.patch(
        f"/v1/enrollments/course/{uuid4()}/progress",
        json={"lesson_id": "l1", "progress": 101},
        headers=auth_headers(),
    )

    assert response.status_code == 422
    assert response.json()["message"] == "Validation error"


def test_course_stats_for_instructor(
    client: TestClient, enrollment_service, auth_headers
):
    enrollment_service.get_course_stats = AsyncMock(
        return_value={
            "total_enrollments": 2,
            "active_enrollments": 1,
            "completed_enrollments": 1,
            "average_progress": 60.0,
            "total_time_spent": 45,
        }
    )

    response = client.get(
        f"/v1/enrollments/course/{uuid4()}/stats",
        headers=auth_headers(UserRole.INSTRUCTOR),
    )

    assert response.status_code == 200
    assert response.json()["average_progress"] == 60.0


def test_check_enrollment(client: TestClient, enrollment_service, auth_headers):
    enrollment_service.is_enrolled = AsyncMock(return_value=False)

    response = client.get(
        f"/v1/enrollments/course/{uuid4()}/check", headers=auth_headers()
    )

    assert response.json() == {"enrolled": False}
