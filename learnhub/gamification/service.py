# ruff: noqa: S608
"""Gamification service layer.

Business logic for:
- Awarding points from the fixed activity table
- Lazily creating a user's points record
- Leaderboard and transaction history
- Re-deriving a user's total from the ledger

Award order: the ledger entry is written first, then the running total is
advanced with a compare-and-set on ``version``. If the second write fails
the ledger still holds the award and ``rebuild_user_points`` restores the
total.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog
from cassandra.util import uuid_from_time

from learnhub.core.exceptions import ConcurrentUpdateError

from .models import (
    GLOBAL_BOARD,
    POINTS_TABLE,
    LeaderboardEntry,
    PointActivityType,
    PointTransaction,
    UserPoints,
    describe_award,
    level_for,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)

DEFAULT_MAX_RETRIES = 5
DEFAULT_HISTORY_LIMIT = 50


class GamificationService:
    """Service for points, levels and the leaderboard."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self.max_retries = max_retries
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        # User points
        self._get_user_points = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.user_points WHERE user_id = ?
        """)

        self._create_user_points = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.user_points
            (user_id, total_points, level, current_streak, longest_streak,
             courses_completed, quizzes_passed, assignments_completed,
             created_at, updated_at, version)
            VALUES (?, 0, 1, 0, 0, 0, 0, 0, ?, ?, 0)
            IF NOT EXISTS
        """)

        self._cas_update_user_points = self.session.prepare(f"""
            UPDATE {self.keyspace}.user_points
            SET total_points = ?, level = ?, current_streak = ?,
                longest_streak = ?, last_activity_at = ?, courses_completed = ?,
                quizzes_passed = ?, assignments_completed = ?, updated_at = ?,
                version = ?
            WHERE user_id = ?
            IF version = ?
        """)

        # Ledger
        self._insert_transaction = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.point_transactions
            (user_id, transaction_id, activity_type, points, description,
             reference_id, reference_type, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._get_transactions = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.point_transactions
            WHERE user_id = ?
            LIMIT ?
        """)

        self._get_ledger_points = self.session.prepare(f"""
            SELECT points FROM {self.keyspace}.point_transactions
            WHERE user_id = ?
        """)

        # Leaderboard
        self._insert_leaderboard_row = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.leaderboard
            (board, total_points, user_id, level)
            VALUES (?, ?, ?, ?)
            USING TIMESTAMP ?
        """)

        self._delete_leaderboard_row = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.leaderboard
            USING TIMESTAMP ?
            WHERE board = ? AND total_points = ? AND user_id = ?
        """)

        self._get_leaderboard = self.session.prepare(f"""
            SELECT user_id, total_points, level FROM {self.keyspace}.leaderboard
            WHERE board = ?
            LIMIT ?
        """)

    # ==========================================================================
    # User Points
    # ==========================================================================

    async def _read_user_points(self, user_id: UUID) -> UserPoints | None:
        result = await self.session.aexecute(self._get_user_points, [user_id])
        row = result.one()
        return UserPoints.from_row(row) if row else None

    async def get_user_points(self, user_id: UUID) -> UserPoints:
        """Get a user's points record, creating an empty one on first access."""
        existing = await self._read_user_points(user_id)
        if existing is not None:
            return existing

        created = UserPoints(user_id=user_id)
        result = await self.session.aexecute(
            self._create_user_points,
            [user_id, created.created_at, created.updated_at],
        )
        if not result.was_applied:
            # Created concurrently; the winner's row is authoritative
            return await self._read_user_points(user_id)

        await self.session.aexecute(
            self._insert_leaderboard_row,
            [
                GLOBAL_BOARD,
                created.total_points,
                user_id,
                created.level,
                created.leaderboard_timestamp(),
            ],
        )
        logger.info("user_points_created", user_id=str(user_id))
        return created

    async def _compare_and_set(self, points: UserPoints, expected: int) -> bool:
        result = await self.session.aexecute(
            self._cas_update_user_points,
            [
                points.total_points,
                points.level,
                points.current_streak,
                points.longest_streak,
                points.last_activity_at,
                points.courses_completed,
                points.quizzes_passed,
                points.assignments_completed,
                points.updated_at,
                points.version,
                points.user_id,
                expected,
            ],
        )
        return result.was_applied

    async def _move_leaderboard_row(
        self, old_total: int, points: UserPoints
    ) -> None:
        """Replace the user's leaderboard row after a total change.

        Both writes carry the new state's timestamp, so the old row's
        deletion also beats any delayed insert of it.
        """
        timestamp = points.leaderboard_timestamp()
        await self.session.aexecute(
            self._insert_leaderboard_row,
            [
                GLOBAL_BOARD,
                points.total_points,
                points.user_id,
                points.level,
                timestamp,
            ],
        )
        if old_total != points.total_points:
            await self.session.aexecute(
                self._delete_leaderboard_row,
                [timestamp, GLOBAL_BOARD, old_total, points.user_id],
            )

    # ==========================================================================
    # Awards
    # ==========================================================================

    async def award_points(
        self,
        user_id: UUID,
        activity_type: PointActivityType,
        reference_id: str | None = None,
        reference_type: str | None = None,
    ) -> UserPoints:
        """Award the fixed points for an activity.

        Returns:
            The updated UserPoints

        Raises:
            ConcurrentUpdateError: If the running total could not be advanced;
                the ledger entry is kept and the total is recoverable
        """
        activity_type = PointActivityType(activity_type)
        points = POINTS_TABLE[activity_type]
        now = datetime.now(UTC)

        await self.get_user_points(user_id)

        transaction = PointTransaction(
            user_id=user_id,
            transaction_id=uuid_from_time(now),
            activity_type=activity_type.value,
            points=points,
            description=describe_award(activity_type, points),
            reference_id=reference_id,
            reference_type=reference_type,
            created_at=now,
        )
        await self.session.aexecute(
            self._insert_transaction,
            [
                transaction.user_id,
                transaction.transaction_id,
                transaction.activity_type,
                transaction.points,
                transaction.description,
                transaction.reference_id,
                transaction.reference_type,
                transaction.created_at,
            ],
        )

        for attempt in range(1, self.max_retries + 1):
            current = await self._read_user_points(user_id)
            expected = current.version
            old_total = current.total_points

            current.apply_award(activity_type, points, now=now)
            current.version = expected + 1

            if await self._compare_and_set(current, expected):
                await self._move_leaderboard_row(old_total, current)
                logger.info(
                    "points_awarded",
                    user_id=str(user_id),
                    activity_type=activity_type.value,
                    points=points,
                    total_points=current.total_points,
                    level=current.level,
                )
                return current

            logger.debug(
                "user_points_write_conflict", user_id=str(user_id), attempt=attempt
            )

        logger.error(
            "points_award_total_not_updated",
            user_id=str(user_id),
            transaction_id=str(transaction.transaction_id),
        )
        raise ConcurrentUpdateError

    async def rebuild_user_points(self, user_id: UUID) -> UserPoints:
        """Re-derive total points and level from the ledger."""
        rows = await self.session.aexecute(self._get_ledger_points, [user_id])
        ledger_total = sum(row.points or 0 for row in rows)

        await self.get_user_points(user_id)

        for _ in range(self.max_retries):
            current = await self._read_user_points(user_id)
            expected = current.version
            old_total = current.total_points

            current.total_points = ledger_total
            current.level = level_for(ledger_total)
            current.updated_at = datetime.now(UTC)
            current.version = expected + 1

            if await self._compare_and_set(current, expected):
                await self._move_leaderboard_row(old_total, current)
                logger.info(
                    "user_points_rebuilt",
                    user_id=str(user_id),
                    previous_total=old_total,
                    total_points=ledger_total,
                )
                return current

        raise ConcurrentUpdateError

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def get_leaderboard(self, limit: int = 10) -> list[LeaderboardEntry]:
        """Top users by total points, highest first."""
        rows = await self.session.aexecute(
            self._get_leaderboard, [GLOBAL_BOARD, limit * 2]
        )

        entries: list[LeaderboardEntry] = []
        seen: set[UUID] = set()
        for row in rows:
            # A user briefly has two rows while their entry moves
            if row.user_id in seen:
                continue
            seen.add(row.user_id)
            entries.append(
                LeaderboardEntry(
                    rank=len(entries) + 1,
                    user_id=row.user_id,
                    total_points=row.total_points,
                    level=row.level or level_for(row.total_points),
                )
            )
            if len(entries) == limit:
                break
        return entries

    async def get_transactions(
        self, user_id: UUID, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> list[PointTransaction]:
        """Most recent ledger entries for a user."""
        rows = await self.session.aexecute(self._get_transactions, [user_id, limit])
        return [PointTransaction.from_row(row) for row in rows]
