"""Tests for points, levels and streaks."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from learnhub.gamification.models import (
    POINTS_TABLE,
    PointActivityType,
    UserPoints,
    describe_award,
    level_for,
)


class TestPointsTable:
    def test_every_activity_has_points(self) -> None:
        assert set(POINTS_TABLE) == set(PointActivityType)

    @pytest.mark.parametrize(
        "activity,points",
        [
            (PointActivityType.COURSE_COMPLETED, 100),
            (PointActivityType.LESSON_COMPLETED, 10),
            (PointActivityType.QUIZ_PASSED, 25),
            (PointActivityType.DAILY_LOGIN, 5),
            (PointActivityType.STREAK_MILESTONE, 30),
        ],
    )
    def test_fixed_amounts(self, activity: PointActivityType, points: int) -> None:
        assert POINTS_TABLE[activity] == points

    def test_description(self) -> None:
        assert (
            describe_award(PointActivityType.QUIZ_PASSED, 25)
            == "Earned 25 points for quiz passed"
        )


@pytest.mark.parametrize(
    "total,level", [(0, 1), (99, 1), (100, 2), (199, 2), (250, 3)]
)
def test_level_for(total: int, level: int) -> None:
    assert level_for(total) == level


class TestApplyAward:
    def test_new_user_starts_streak(self) -> None:
        points = UserPoints(user_id=uuid4())
        now = datetime(2026, 4, 1, 10, tzinfo=UTC)

        points.apply_award(PointActivityType.COURSE_COMPLETED, 100, now=now)

        assert points.total_points == 100
        assert points.level == 2
        assert points.courses_completed == 1
        assert points.current_streak == 1
        assert points.longest_streak == 1
        assert points.last_activity_at == now

    def test_next_day_extends_streak(self) -> None:
        now = datetime(2026, 4, 2, 8, tzinfo=UTC)
        points = UserPoints(
            user_id=uuid4(),
            current_streak=3,
            longest_streak=3,
            last_activity_at=now - timedelta(days=1),
        )

        points.apply_award(PointActivityType.DAILY_LOGIN, 5, now=now)

        assert points.current_streak == 4
        assert points.longest_streak == 4

    def test_same_day_keeps_streak(self) -> None:
        now = datetime(2026, 4, 2, 20, tzinfo=UTC)
        points = UserPoints(
            user_id=uuid4(),
            current_streak=2,
            longest_streak=5,
            last_activity_at=now - timedelta(hours=3),
        )

        points.apply_award(PointActivityType.QUIZ_PASSED, 25, now=now)

        assert points.current_streak == 2
        assert points.quizzes_passed == 1

    def test_gap_resets_streak_but_keeps_longest(self) -> None:
        now = datetime(2026, 4, 10, tzinfo=UTC)
        points = UserPoints(
            user_id=uuid4(),
            current_streak=6,
            longest_streak=6,
            last_activity_at=now - timedelta(days=4),
        )

        points.apply_award(PointActivityType.ASSIGNMENT_SUBMITTED, 20, now=now)

        assert points.current_streak == 1
        assert points.longest_streak == 6
        assert points.assignments_completed == 1


def test_leaderboard_timestamp_grows_with_version() -> None:
    created = datetime(2026, 1, 1, tzinfo=UTC)
    older = UserPoints(user_id=uuid4(), created_at=created, version=3)
    newer = UserPoints(user_id=older.user_id, created_at=created, version=4)

    assert newer.leaderboard_timestamp() > older.leaderboard_timestamp()


@pytest.mark.parametrize(
    "first,second",
    [
        (PointActivityType.COURSE_COMPLETED, PointActivityType.QUIZ_PASSED),
        (PointActivityType.LESSON_COMPLETED, PointActivityType.PERFECT_SCORE),
        (PointActivityType.DAILY_LOGIN, PointActivityType.STREAK_MILESTONE),
    ],
)
def test_totals_do_not_depend_on_award_order(
    first: PointActivityType, second: PointActivityType
) -> None:
    now = datetime(2026, 5, 1, 9, tzinfo=UTC)
    forward = UserPoints(user_id=uuid4(), total_points=80, level=1)
    backward = UserPoints(user_id=forward.user_id, total_points=80, level=1)

    for points, activity in ((forward, first), (forward, second)):
        points.apply_award(activity, POINTS_TABLE[activity], now=now)
        assert points.level == points.total_points // 100 + 1
    for points, activity in ((backward, second), (backward, first)):
        points.apply_award(activity, POINTS_TABLE[activity], now=now)
        assert points.level == points.total_points // 100 + 1

    assert forward.total_points == backward.total_points
    assert forward.total_points == 80 + POINTS_TABLE[first] + POINTS_TABLE[second]
    assert forward.level == backward.level


def test_badges_and_achievements_pass_through_awards() -> None:
    badge, achievement = uuid4(), uuid4()
    points = UserPoints(user_id=uuid4(), badges={badge}, achievements={achievement})

    points.apply_award(PointActivityType.COURSE_COMPLETED, 100)

    data = points.to_dict()
    assert data["badges"] == [badge]
    assert data["achievements"] == [achievement]
