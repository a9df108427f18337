"""Database models for gamification.

Cassandra table definitions for:
- User points: running total, level, streaks and activity counters
- Point transactions: append-only ledger, newest first per user
- Leaderboard: single partition clustered by total points

The ledger is the source of truth; ``user_points`` is a running sum that
can always be re-derived from it.
"""

from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any
from uuid import UUID

from learnhub.utils import ensure_utc_aware


POINTS_PER_LEVEL = 100
GLOBAL_BOARD = "global"


class PointActivityType(str, Enum):
    """Activities that earn points."""

    COURSE_COMPLETED = "course_completed"
    LESSON_COMPLETED = "lesson_completed"
    QUIZ_PASSED = "quiz_passed"
    ASSIGNMENT_SUBMITTED = "assignment_submitted"
    PERFECT_SCORE = "perfect_score"
    DAILY_LOGIN = "daily_login"
    COURSE_REVIEWED = "course_reviewed"
    DISCUSSION_POST = "discussion_post"
    HELP_OTHERS = "help_others"
    STREAK_MILESTONE = "streak_milestone"


POINTS_TABLE: dict[PointActivityType, int] = {
    PointActivityType.COURSE_COMPLETED: 100,
    PointActivityType.LESSON_COMPLETED: 10,
    PointActivityType.QUIZ_PASSED: 25,
    PointActivityType.ASSIGNMENT_SUBMITTED: 20,
    PointActivityType.PERFECT_SCORE: 50,
    PointActivityType.DAILY_LOGIN: 5,
    PointActivityType.COURSE_REVIEWED: 15,
    PointActivityType.DISCUSSION_POST: 5,
    PointActivityType.HELP_OTHERS: 10,
    PointActivityType.STREAK_MILESTONE: 30,
}


def level_for(total_points: int) -> int:
    """Level 1 at 0-99 points, level 2 at 100-199, and so on."""
    return total_points // POINTS_PER_LEVEL + 1


def describe_award(activity_type: PointActivityType, points: int) -> str:
    return f"Earned {points} points for {activity_type.value.replace('_', ' ')}"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

USER_POINTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.user_points (
    user_id UUID PRIMARY KEY,
    total_points INT,
    level INT,
    current_streak INT,
    longest_streak INT,
    last_activity_at TIMESTAMP,
    courses_completed INT,
    quizzes_passed INT,
    assignments_completed INT,
    badges SET<UUID>,
    achievements SET<UUID>,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    version INT
)
"""

POINT_TRANSACTIONS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.point_transactions (
    user_id UUID,
    transaction_id TIMEUUID,
    activity_type TEXT,
    points INT,
    description TEXT,
    reference_id TEXT,
    reference_type TEXT,
    created_at TIMESTAMP,
    PRIMARY KEY ((user_id), transaction_id)
) WITH CLUSTERING ORDER BY (transaction_id DESC)
"""

LEADERBOARD_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.leaderboard (
    board TEXT,
    total_points INT,
    user_id UUID,
    level INT,
    PRIMARY KEY ((board), total_points, user_id)
) WITH CLUSTERING ORDER BY (total_points DESC, user_id ASC)
"""

GAMIFICATION_TABLES_CQL = [
    USER_POINTS_TABLE_CQL,
    POINT_TRANSACTIONS_TABLE_CQL,
    LEADERBOARD_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class UserPoints:
    """A user's running points total, level and activity counters."""

    def __init__(
        self,
        user_id: UUID,
        total_points: int = 0,
        level: int = 1,
        current_streak: int = 0,
        longest_streak: int = 0,
        last_activity_at: datetime | None = None,
        courses_completed: int = 0,
        quizzes_passed: int = 0,
        assignments_completed: int = 0,
        badges: set[UUID] | None = None,
        achievements: set[UUID] | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        version: int = 0,
    ):
        now = datetime.now(UTC)
        self.user_id = user_id
        self.total_points = total_points
        self.level = level
        self.current_streak = current_streak
        self.longest_streak = longest_streak
        self.last_activity_at = ensure_utc_aware(last_activity_at)
        self.courses_completed = courses_completed
        self.quizzes_passed = quizzes_passed
        self.assignments_completed = assignments_completed
        self.badges = set(badges or ())
        self.achievements = set(achievements or ())
        self.created_at = ensure_utc_aware(created_at) or now
        self.updated_at = ensure_utc_aware(updated_at) or now
        self.version = version

    def apply_award(
        self,
        activity_type: PointActivityType,
        points: int,
        now: datetime | None = None,
    ) -> None:
        """Add points and update level, activity counters and daily streak.

        An award on the day after the last activity extends the streak, an
        award on the same day keeps it, anything else restarts it at 1.
        """
        now = now or datetime.now(UTC)

        self.total_points += points
        self.level = level_for(self.total_points)

        if activity_type == PointActivityType.COURSE_COMPLETED:
            self.courses_completed += 1
        elif activity_type == PointActivityType.QUIZ_PASSED:
            self.quizzes_passed += 1
        elif activity_type == PointActivityType.ASSIGNMENT_SUBMITTED:
            self.assignments_completed += 1

        today = now.date()
        last_day = self.last_activity_at.date() if self.last_activity_at else None
        if last_day == today:
            self.current_streak = max(self.current_streak, 1)
        elif last_day == today - timedelta(days=1):
            self.current_streak += 1
        else:
            self.current_streak = 1
        self.longest_streak = max(self.longest_streak, self.current_streak)

        self.last_activity_at = now
        self.updated_at = now

    def leaderboard_timestamp(self) -> int:
        """Write timestamp for this state's leaderboard row.

        Grows with ``version`` so an older row can never outlive the delete
        issued by a newer state, whatever order the writes land in.
        """
        return int(self.created_at.timestamp() * 1000) * 1000 + self.version

    @classmethod
    def from_row(cls, row: Any) -> "UserPoints":
        """Create UserPoints instance from Cassandra row."""
        return cls(
            user_id=row.user_id,
            total_points=row.total_points or 0,
            level=row.level or 1,
            current_streak=row.current_streak or 0,
            longest_streak=row.longest_streak or 0,
            last_activity_at=row.last_activity_at,
            courses_completed=row.courses_completed or 0,
            quizzes_passed=row.quizzes_passed or 0,
            assignments_completed=row.assignments_completed or 0,
            badges=row.badges,
            achievements=row.achievements,
            created_at=row.created_at,
            updated_at=row.updated_at,
            version=row.version or 0,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "user_id": self.user_id,
            "total_points": self.total_points,
            "level": self.level,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "last_activity_at": self.last_activity_at,
            "courses_completed": self.courses_completed,
            "quizzes_passed": self.quizzes_passed,
            "assignments_completed": self.assignments_completed,
            "badges": sorted(self.badges, key=str),
            "achievements": sorted(self.achievements, key=str),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<UserPoints {self.user_id} {self.total_points}pts L{self.level}>"


class PointTransaction:
    """Immutable ledger entry for one award."""

    def __init__(
        self,
        user_id: UUID,
        transaction_id: UUID,
        activity_type: str,
        points: int,
        description: str,
        reference_id: str | None = None,
        reference_type: str | None = None,
        created_at: datetime | None = None,
    ):
        self.user_id = user_id
        self.transaction_id = transaction_id
        self.activity_type = activity_type
        self.points = points
        self.description = description
        self.reference_id = reference_id
        self.reference_type = reference_type
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "PointTransaction":
        return cls(
            user_id=row.user_id,
            transaction_id=row.transaction_id,
            activity_type=row.activity_type,
            points=row.points or 0,
            description=row.description or "",
            reference_id=row.reference_id,
            reference_type=row.reference_type,
            created_at=row.created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "transaction_id": self.transaction_id,
            "user_id": self.user_id,
            "activity_type": self.activity_type,
            "points": self.points,
            "description": self.description,
            "reference_id": self.reference_id,
            "reference_type": self.reference_type,
            "created_at": self.created_at,
        }

    def __repr__(self) -> str:
        return f"<PointTransaction {self.user_id} +{self.points} {self.activity_type}>"


class LeaderboardEntry:
    def __init__(self, rank: int, user_id: UUID, total_points: int, level: int):
        self.rank = rank
        self.user_id = user_id
        self.total_points = total_points
        self.level = level

    def to_dict(self) -> dict[str, Any]:
        return {
            "rank": self.rank,
            "user_id": self.user_id,
            "total_points": self.total_points,
            "level": self.level,
        }
