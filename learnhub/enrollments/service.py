# ruff: noqa: S608
"""Enrollment service layer.

Business logic for:
- Enrolling and unenrolling students
- Lesson-level progress updates with automatic course completion
- Per-course and per-student statistics

Every read-modify-write on an enrollment is a compare-and-set on its
``version`` column; a lost race re-reads and retries.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from learnhub.core.exceptions import (
    ConcurrentUpdateError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
)
from learnhub.utils import page_offset

from .models import (
    CourseEnrollment,
    Enrollment,
    EnrollmentStatus,
    summarize_enrollments,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)

DEFAULT_MAX_RETRIES = 5


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class EnrollmentNotFoundError(NotFoundError):
    def __init__(self, message: str = "Enrollment not found"):
        super().__init__(message, "enrollment_not_found")


class AlreadyEnrolledError(ConflictError):
    def __init__(self, message: str = "Already enrolled in this course"):
        super().__init__(message, "already_enrolled")


class CannotUnenrollCompletedError(InvalidStateError):
    def __init__(self, message: str = "Cannot unenroll from completed course"):
        super().__init__(message, "course_completed")


def lookup_write_timestamp(enrollment: Enrollment) -> int:
    """Write timestamp for the course lookup row, increasing with version.

    The base is the enrollment time truncated to milliseconds, which is the
    precision Cassandra keeps, so it is stable across reads.
    """
    return int(enrollment.enrolled_at.timestamp() * 1000) * 1000 + enrollment.version


# ==============================================================================
# Enrollment Service
# ==============================================================================


class EnrollmentService:
    """Service for enrollments, progress and enrollment statistics."""

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
        self._get_enrollment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments
            WHERE student_id = ? AND course_id = ?
        """)

        self._get_student_enrollments = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments
            WHERE student_id = ?
        """)

        self._insert_enrollment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments
            (student_id, course_id, status, progress, total_time_spent, order_id,
             enrolled_at, last_accessed_at, version)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._cas_update_enrollment = self.session.prepare(f"""
            UPDATE {self.keyspace}.enrollments
            SET status = ?, progress = ?, lesson_progress = ?,
                completed_lessons = ?, lesson_last_accessed = ?,
                total_time_spent = ?, last_accessed_at = ?, completed_at = ?,
                version = ?
            WHERE student_id = ? AND course_id = ?
            IF version = ?
        """)

        # Lookup by course. The version-derived write timestamp makes a late
        # write of an older state lose against a newer one.
        self._upsert_course_enrollment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments_by_course
            (course_id, student_id, status, progress, total_time_spent,
             enrolled_at, last_accessed_at, completed_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            USING TIMESTAMP ?
        """)

        self._get_course_enrollments = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments_by_course
            WHERE course_id = ?
        """)

    # ==========================================================================
    # Persistence helpers
    # ==========================================================================

    async def get_enrollment(
        self, student_id: UUID, course_id: UUID
    ) -> Enrollment | None:
        """Get a student's enrollment in a course, if any."""
        result = await self.session.aexecute(
            self._get_enrollment, [student_id, course_id]
        )
        row = result.one()
        return Enrollment.from_row(row) if row else None

    async def _sync_course_lookup(self, enrollment: Enrollment) -> None:
        await self.session.aexecute(
            self._upsert_course_enrollment,
            [
                enrollment.course_id,
                enrollment.student_id,
                enrollment.status,
                enrollment.progress,
                enrollment.total_time_spent,
                enrollment.enrolled_at,
                enrollment.last_accessed_at,
                enrollment.completed_at,
                lookup_write_timestamp(enrollment),
            ],
        )

    async def _compare_and_set(self, enrollment: Enrollment, expected: int) -> bool:
        result = await self.session.aexecute(
            self._cas_update_enrollment,
            [
                enrollment.status,
                enrollment.progress,
                enrollment.lesson_progress,
                enrollment.completed_lessons,
                enrollment.lesson_last_accessed,
                enrollment.total_time_spent,
                enrollment.last_accessed_at,
                enrollment.completed_at,
                enrollment.version,
                enrollment.student_id,
                enrollment.course_id,
                expected,
            ],
        )
        return result.was_applied

    async def _mutate(
        self,
        student_id: UUID,
        course_id: UUID,
        change: Callable[[Enrollment], None],
    ) -> Enrollment:
        """Read, apply ``change`` and write back conditionally on version.

        ``change`` may raise to abort; it runs again on every retry against
        the freshly read record.

        Raises:
            EnrollmentNotFoundError: If the enrollment does not exist
            ConcurrentUpdateError: If every attempt lost a race
        """
        for attempt in range(1, self.max_retries + 1):
            enrollment = await self.get_enrollment(student_id, course_id)
            if enrollment is None:
                raise EnrollmentNotFoundError

            expected = enrollment.version
            change(enrollment)
            enrollment.version = expected + 1

            if await self._compare_and_set(enrollment, expected):
                await self._sync_course_lookup(enrollment)
                return enrollment

            logger.debug(
                "enrollment_write_conflict",
                student_id=str(student_id),
                course_id=str(course_id),
                attempt=attempt,
            )

        logger.warning(
            "enrollment_write_conflict_exhausted",
            student_id=str(student_id),
            course_id=str(course_id),
            attempts=self.max_retries,
        )
        raise ConcurrentUpdateError

    # ==========================================================================
    # Enrollment Lifecycle
    # ==========================================================================

    async def enroll(
        self,
        student_id: UUID,
        course_id: UUID,
        order_id: str | None = None,
    ) -> Enrollment:
        """Enroll a student in a course.

        Raises:
            AlreadyEnrolledError: If an enrollment for the pair exists,
                whatever its status
        """
        now = datetime.now(UTC)
        enrollment = Enrollment(
            student_id=student_id,
            course_id=course_id,
            status=EnrollmentStatus.ACTIVE.value,
            order_id=order_id,
            enrolled_at=now,
            last_accessed_at=now,
        )

        result = await self.session.aexecute(
            self._insert_enrollment,
            [
                student_id,
                course_id,
                enrollment.status,
                enrollment.progress,
                enrollment.total_time_spent,
                order_id,
                enrollment.enrolled_at,
                enrollment.last_accessed_at,
                enrollment.version,
            ],
        )
        if not result.was_applied:
            raise AlreadyEnrolledError

        await self._sync_course_lookup(enrollment)

        logger.info(
            "student_enrolled",
            student_id=str(student_id),
            course_id=str(course_id),
            order_id=order_id,
        )
        return enrollment

    async def update_progress(
        self,
        student_id: UUID,
        course_id: UUID,
        lesson_id: str,
        progress: int | None = None,
        completed: bool | None = None,
        time_spent_seconds: float | None = None,
    ) -> Enrollment:
        """Apply a lesson-level progress update.

        Raises:
            EnrollmentNotFoundError: If the student is not enrolled
        """
        was_completed = False

        def change(enrollment: Enrollment) -> None:
            nonlocal was_completed
            was_completed = enrollment.completed_at is not None
            enrollment.apply_lesson_update(
                lesson_id,
                progress=progress,
                completed=completed,
                time_spent_seconds=time_spent_seconds,
            )

        enrollment = await self._mutate(student_id, course_id, change)

        if enrollment.is_completed and not was_completed:
            logger.info(
                "course_completed",
                student_id=str(student_id),
                course_id=str(course_id),
            )
        return enrollment

    async def unenroll(self, student_id: UUID, course_id: UUID) -> Enrollment:
        """Cancel an enrollment. Only the status changes.

        Raises:
            EnrollmentNotFoundError: If the student is not enrolled
            CannotUnenrollCompletedError: If the course was completed
        """

        def change(enrollment: Enrollment) -> None:
            if enrollment.is_completed:
                raise CannotUnenrollCompletedError
            enrollment.status = EnrollmentStatus.CANCELLED.value

        enrollment = await self._mutate(student_id, course_id, change)
        logger.info(
            "student_unenrolled",
            student_id=str(student_id),
            course_id=str(course_id),
        )
        return enrollment

    async def is_enrolled(self, student_id: UUID, course_id: UUID) -> bool:
        enrollment = await self.get_enrollment(student_id, course_id)
        return enrollment is not None and enrollment.is_enrolled

    # ==========================================================================
    # Listings and Statistics
    # ==========================================================================

    async def _student_enrollments(self, student_id: UUID) -> list[Enrollment]:
        rows = await self.session.aexecute(
            self._get_student_enrollments, [student_id]
        )
        return [Enrollment.from_row(row) for row in rows]

    async def list_enrollments(
        self,
        student_id: UUID,
        status: EnrollmentStatus | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Enrollment], int]:
        """Page through a student's enrollments, most recently active first.

        Returns:
            Tuple of (page items, total matching)
        """
        enrollments = await self._student_enrollments(student_id)
        if status is not None:
            enrollments = [
                e for e in enrollments if e.status == EnrollmentStatus(status).value
            ]

        enrollments.sort(key=lambda e: e.last_accessed_at, reverse=True)
        offset = page_offset(page, limit)
        return enrollments[offset : offset + limit], len(enrollments)

    async def get_user_stats(self, student_id: UUID) -> dict[str, Any]:
        return summarize_enrollments(await self._student_enrollments(student_id))

    async def _course_enrollments(self, course_id: UUID) -> list[CourseEnrollment]:
        rows = await self.session.aexecute(self._get_course_enrollments, [course_id])
        return [CourseEnrollment.from_row(row) for row in rows]

    async def get_course_stats(self, course_id: UUID) -> dict[str, Any]:
        """Counts, mean progress and total time for a course (zeros if empty)."""
        return summarize_enrollments(await self._course_enrollments(course_id))

    async def list_course_enrollments(
        self,
        course_id: UUID,
        page: int = 1,
        limit: int = 10,
    ) -> dict[str, Any]:
        """Page through a course's students, newest enrollment first.

        Returns:
            Dict with items, total and stats for the whole course
        """
        enrollments = await self._course_enrollments(course_id)
        stats = summarize_enrollments(enrollments)

        epoch = datetime.min.replace(tzinfo=UTC)
        enrollments.sort(key=lambda e: e.enrolled_at or epoch, reverse=True)
        offset = page_offset(page, limit)
        return {
            "items": enrollments[offset : offset + limit],
            "total": len(enrollments),
            "stats": stats,
        }
