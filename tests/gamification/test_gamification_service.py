"""Tests for GamificationService against a mocked Cassandra session."""

from datetime import datetime
from types import SimpleNamespace
from uuid import uuid4

import pytest

from learnhub.core.exceptions import ConcurrentUpdateError
from learnhub.gamification.models import GLOBAL_BOARD, PointActivityType
from learnhub.gamification.service import GamificationService


USER_ID = uuid4()


def points_row(**overrides) -> SimpleNamespace:
    values = {
        "user_id": USER_ID,
        "total_points": 0,
        "level": 1,
        "current_streak": 0,
        "longest_streak": 0,
        "last_activity_at": None,
        "courses_completed": 0,
        "quizzes_passed": 0,
        "assignments_completed": 0,
        "badges": None,
        "achievements": None,
        "created_at": datetime(2026, 1, 1),
        "updated_at": datetime(2026, 1, 1),
        "version": 0,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture
def service(mock_session) -> GamificationService:
    return GamificationService(mock_session, "test_ks", max_retries=2)


class TestGetUserPoints:
    @pytest.mark.asyncio
    async def test_first_access_creates_empty_record(
        self, service, mock_session, make_result
    ) -> None:
        mock_session.aexecute.side_effect = [
            make_result([]),
            make_result(applied=True),
            make_result(),
        ]

        points = await service.get_user_points(USER_ID)

        assert points.total_points == 0
        assert points.level == 1
        leaderboard_params = mock_session.aexecute.await_args_list[2].args[1]
        assert leaderboard_params[:4] == [GLOBAL_BOARD, 0, USER_ID, 1]

    @pytest.mark.asyncio
    async def test_concurrent_creation_reads_winner(
        self, service, mock_session, make_result
    ) -> None:
        mock_session.aexecute.side_effect = [
            make_result([]),
            make_result(applied=False),
            make_result([points_row(total_points=15, version=1)]),
        ]

        points = await service.get_user_points(USER_ID)

        assert points.total_points == 15


class TestAwardPoints:
    @pytest.mark.asyncio
    async def test_ledger_written_before_total(
        self, service, mock_session, make_result
    ) -> None:
        existing = points_row(total_points=90, version=7)
        mock_session.aexecute.side_effect = [
            make_result([existing]),
            make_result(),
            make_result([existing]),
            make_result(applied=True),
            make_result(),
            make_result(),
        ]

        points = await service.award_points(
            USER_ID, PointActivityType.LESSON_COMPLETED, reference_id="lesson-1"
        )

        assert points.total_points == 100
        assert points.level == 2
        assert points.version == 8

        calls = mock_session.aexecute.await_args_list
        transaction_params = calls[1].args[1]
        assert transaction_params[2] == "lesson_completed"
        assert transaction_params[3] == 10
        assert transaction_params[5] == "lesson-1"
        assert calls[3].args[1][-1] == 7
        # Old leaderboard row removed
        assert calls[5].args[1][1:] == [GLOBAL_BOARD, 90, USER_ID]

    @pytest.mark.asyncio
    async def test_fresh_user_gets_award(
        self, service, mock_session, make_result
    ) -> None:
        mock_session.aexecute.side_effect = [
            make_result([]),
            make_result(applied=True),
            make_result(),
            make_result(),
            make_result([points_row()]),
            make_result(applied=True),
            make_result(),
            make_result(),
        ]

        points = await service.award_points(USER_ID, "daily_login")

        assert points.total_points == 5
        assert points.current_streak == 1

    @pytest.mark.asyncio
    async def test_total_not_advanced_raises(
        self, service, mock_session, make_result
    ) -> None:
        mock_session.aexecute.side_effect = [
            make_result([points_row()]),
            make_result(),
            make_result([points_row()]),
            make_result(applied=False),
            make_result([points_row(version=1)]),
            make_result(applied=False),
        ]

        with pytest.raises(ConcurrentUpdateError):
            await service.award_points(USER_ID, PointActivityType.QUIZ_PASSED)

    @pytest.mark.asyncio
    async def test_unknown_activity_rejected(self, service) -> None:
        with pytest.raises(ValueError):
            await service.award_points(USER_ID, "watched_ad")


class TestRebuild:
    @pytest.mark.asyncio
    async def test_total_matches_ledger(
        self, service, mock_session, make_result
    ) -> None:
        ledger = [SimpleNamespace(points=p) for p in (100, 25, 10)]
        stale = points_row(total_points=110, level=2, version=3)
        mock_session.aexecute.side_effect = [
            make_result(ledger),
            make_result([stale]),
            make_result([stale]),
            make_result(applied=True),
            make_result(),
            make_result(),
        ]

        points = await service.rebuild_user_points(USER_ID)

        assert points.total_points == 135
        assert points.level == 2
        assert points.version == 4


class TestQueries:
    @pytest.mark.asyncio
    async def test_leaderboard_skips_duplicate_user_rows(
        self, service, mock_session, make_result
    ) -> None:
        a, b, c = uuid4(), uuid4(), uuid4()
        mock_session.aexecute.return_value = make_result(
            [
                SimpleNamespace(user_id=a, total_points=300, level=4),
                SimpleNamespace(user_id=b, total_points=250, level=3),
                SimpleNamespace(user_id=a, total_points=200, level=3),
                SimpleNamespace(user_id=c, total_points=50, level=1),
            ]
        )

        entries = await service.get_leaderboard(limit=3)

        assert [(e.rank, e.user_id) for e in entries] == [(1, a), (2, b), (3, c)]
        assert mock_session.aexecute.await_args.args[1] == [GLOBAL_BOARD, 6]

    @pytest.mark.asyncio
    async def test_transactions(self, service, mock_session, make_result) -> None:
        row = SimpleNamespace(
            user_id=USER_ID,
            transaction_id=uuid4(),
            activity_type="quiz_passed",
            points=25,
            description="Earned 25 points for quiz passed",
            reference_id=None,
            reference_type=None,
            created_at=datetime(2026, 2, 2),
        )
        mock_session.aexecute.return_value = make_result([row])

        transactions = await service.get_transactions(USER_ID, limit=5)

        assert len(transactions) == 1
        assert transactions[0].points == 25
        assert mock_session.aexecute.await_args.args[1] == [USER_ID, 5]
