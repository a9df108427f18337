"""Shared fixtures: test settings, app client, tokens and a mocked session."""

import os
import tempfile
from collections.abc import Callable, Iterator
from typing import Any
from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest
from cassandra.cluster import Session
from fastapi.testclient import TestClient


# Settings are cached on first use, so the test environment is set up front
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="learnhub-logs-"))

from learnhub.auth.permissions import UserRole  # noqa: E402
from learnhub.auth.security import create_access_token  # noqa: E402


SERVICE_ATTRS = (
    "cassandra_session",
    "security_log_service",
    "enrollment_service",
    "gamification_service",
    "category_service",
    "review_service",
    "support_service",
    "wishlist_service",
)


class FakeResult:
    """Stand-in for a driver result set: iterable, ``one()``, ``was_applied``."""

    def __init__(self, rows: list[Any] | None = None, applied: bool = True):
        self._rows = list(rows or [])
        self.was_applied = applied

    def one(self) -> Any:
        return self._rows[0] if self._rows else None

    def __iter__(self) -> Iterator[Any]:
        return iter(self._rows)


@pytest.fixture
def make_result() -> type[FakeResult]:
    return FakeResult


@pytest.fixture
def mock_session() -> Mock:
    """Mock Cassandra session with an awaitable aexecute."""
    session = Mock(spec=Session)
    session.prepare = Mock(return_value=Mock())
    session.aexecute = AsyncMock(return_value=FakeResult())
    return session


@pytest.fixture
def app():
    from learnhub.main import app as application

    yield application
    for attr in SERVICE_ATTRS:
        if hasattr(application.state, attr):
            delattr(application.state, attr)


@pytest.fixture
def client(app) -> TestClient:
    """Client without lifespan, so no database connection is attempted."""
    return TestClient(app)


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    """Build an Authorization header for a role (and optional user ID)."""

    def _headers(
        role: UserRole = UserRole.STUDENT, user_id: UUID | None = None
    ) -> dict[str, str]:
        token = create_access_token(
            {
                "sub": str(user_id or uuid4()),
                "role": role.value,
                "email": "user@example.com",
            }
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
