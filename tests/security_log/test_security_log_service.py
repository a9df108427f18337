"""Tests for SecurityLogService."""

import asyncio
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import patch
from uuid import uuid4

import pytest
from cassandra.util import uuid_from_time

from learnhub.security_log.models import (
    SecurityEventType,
    ThreatLevel,
    buckets_between,
    day_bucket,
    day_bucket_for_event,
)
from learnhub.security_log.service import (
    SecurityEventNotFoundError,
    SecurityLogService,
)


def event_row(event_type: str, threat_level: str, **overrides) -> SimpleNamespace:
    created_at = overrides.pop("created_at", datetime.now(UTC))
    values = {
        "event_id": uuid_from_time(created_at),
        "event_type": event_type,
        "threat_level": threat_level,
        "ip_address": "203.0.113.7",
        "description": "",
        "user_id": None,
        "endpoint": "/v1/enrollments",
        "method": "GET",
        "payload": None,
        "user_agent": None,
        "resolved": False,
        "resolved_at": None,
        "resolved_by": None,
        "notes": None,
        "created_at": created_at,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def rows_by_bucket(make_result, rows):
    """aexecute side effect returning each row only from its own day bucket."""

    def _execute(statement, params):
        return make_result([r for r in rows if day_bucket(r.created_at) == params[0]])

    return _execute


@pytest.fixture
def service(mock_session) -> SecurityLogService:
    return SecurityLogService(mock_session, "test_ks")


class TestBuckets:
    def test_buckets_newest_first(self) -> None:
        since = datetime(2026, 3, 1, 23, tzinfo=UTC)
        until = datetime(2026, 3, 3, 1, tzinfo=UTC)

        assert buckets_between(since, until) == [
            "2026-03-03",
            "2026-03-02",
            "2026-03-01",
        ]

    def test_bucket_recovered_from_event_id(self) -> None:
        moment = datetime(2026, 7, 4, 15, 30, tzinfo=UTC)
        assert day_bucket_for_event(uuid_from_time(moment)) == "2026-07-04"


class TestLogEvent:
    @pytest.mark.asyncio
    async def test_event_is_stored(self, service, mock_session) -> None:
        await service.log_event(
            event_type=SecurityEventType.IP_BLOCKED,
            threat_level=ThreatLevel.HIGH,
            ip_address="198.51.100.1",
            description="Blocked after repeated failures",
            payload={"attempts": 12},
        )

        params = mock_session.aexecute.await_args.args[1]
        assert params[2] == "ip_blocked"
        assert params[3] == "high"
        assert params[8] == '{"attempts":12}'
        assert params[11] is False

    @pytest.mark.asyncio
    async def test_store_failure_never_raises(self, service, mock_session) -> None:
        mock_session.aexecute.side_effect = RuntimeError("cluster unavailable")

        with patch("learnhub.security_log.service.logger") as mock_logger:
            await service.log_event(
                event_type="unauthorized_access",
                threat_level="medium",
                ip_address="unknown",
                description="Invalid token",
            )

        mock_logger.exception.assert_called_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "event_type,threat_level",
        [("not_a_type", "low"), ("ip_blocked", "severe")],
    )
    async def test_invalid_event_never_raises(
        self, service, mock_session, event_type, threat_level
    ) -> None:
        with patch("learnhub.security_log.service.logger") as mock_logger:
            await service.log_event(event_type, threat_level, "1.2.3.4", "x")

        mock_logger.exception.assert_called_once()
        mock_session.aexecute.assert_not_awaited()


class TestRecord:
    @pytest.mark.asyncio
    async def test_record_returns_before_write_finishes(
        self, service, mock_session
    ) -> None:
        release = asyncio.Event()
        stored: list[str] = []

        async def blocked_insert(statement, params):
            await release.wait()
            stored.append(params[2])

        mock_session.aexecute.side_effect = blocked_insert

        task = service.record(
            event_type=SecurityEventType.UNAUTHORIZED_ACCESS,
            threat_level=ThreatLevel.MEDIUM,
            ip_address="203.0.113.9",
            description="Invalid token",
        )
        await asyncio.sleep(0)

        assert not task.done()
        assert stored == []

        release.set()
        await service.drain()

        assert stored == ["unauthorized_access"]
        assert task.done()

    @pytest.mark.asyncio
    async def test_drain_cancels_stuck_writes(self, service, mock_session) -> None:
        async def hung_insert(statement, params):
            await asyncio.Event().wait()

        mock_session.aexecute.side_effect = hung_insert

        task = service.record(
            event_type="ip_blocked",
            threat_level="high",
            ip_address="198.51.100.4",
            description="Blocked",
        )
        await service.drain(timeout=0.05)

        with pytest.raises(asyncio.CancelledError):
            await task
        assert task.cancelled()

    @pytest.mark.asyncio
    async def test_drain_with_nothing_pending(self, service) -> None:
        await service.drain()


class TestQueries:
    @pytest.mark.asyncio
    async def test_metrics(self, service, mock_session, make_result) -> None:
        rows = [
            event_row("rate_limit_exceeded", "low"),
            event_row("sql_injection_attempt", "critical"),
            event_row("sql_injection_attempt", "critical", resolved=True),
        ]
        mock_session.aexecute.side_effect = rows_by_bucket(make_result, rows)

        metrics = await service.get_security_metrics(days=2)

        assert metrics["total_events"] == 3
        assert metrics["events_by_type"] == {
            "rate_limit_exceeded": 1,
            "sql_injection_attempt": 2,
        }
        assert metrics["events_by_threat"] == {"low": 1, "critical": 2}
        assert metrics["unresolved_critical"] == 1
        assert metrics["period"] == "2 days"

    @pytest.mark.asyncio
    async def test_events_outside_window_excluded(
        self, service, mock_session, make_result
    ) -> None:
        now = datetime.now(UTC)
        rows = [
            event_row("ip_blocked", "high", ip_address="192.0.2.1"),
            event_row(
                "ip_blocked",
                "high",
                ip_address="192.0.2.2",
                created_at=now - timedelta(hours=30),
            ),
            event_row("ip_blocked", "high", ip_address="192.0.2.1"),
        ]
        mock_session.aexecute.side_effect = rows_by_bucket(make_result, rows)

        assert await service.get_blocked_ips(hours=24) == ["192.0.2.1"]

    @pytest.mark.asyncio
    async def test_unresolved_filter(self, service, mock_session, make_result) -> None:
        rows = [
            event_row("xss_attempt", "high"),
            event_row("xss_attempt", "low"),
            event_row("xss_attempt", "high", resolved=True),
        ]
        mock_session.aexecute.side_effect = rows_by_bucket(make_result, rows)

        events = await service.get_unresolved_threats(threat_level=ThreatLevel.HIGH)

        assert len(events) == 1
        assert events[0].threat_level == "high"

    @pytest.mark.asyncio
    async def test_resolve_missing_event(
        self, service, mock_session, make_result
    ) -> None:
        mock_session.aexecute.return_value = make_result(applied=False)

        with pytest.raises(SecurityEventNotFoundError):
            await service.resolve_event(uuid4(), resolved_by="admin")
