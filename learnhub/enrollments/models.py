"""Database models for course enrollments.

Cassandra table definitions for:
- Enrollments: one row per (student, course) with per-lesson maps
- Enrollments by course: lookup for per-course listings and stats

Architecture: the student-partitioned table is the source of truth and is
only mutated through lightweight transactions on ``version``. The course
lookup is rewritten after every successful mutation.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from learnhub.utils import ensure_utc_aware, round_half_up


COMPLETE_PROGRESS = 100


class EnrollmentStatus(str, Enum):
    """Course enrollment status."""

    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that count as "enrolled"
ENROLLED_STATUSES = frozenset(
    {EnrollmentStatus.ACTIVE.value, EnrollmentStatus.COMPLETED.value}
)


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Partition per student: listing and per-user stats read a single partition
ENROLLMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments (
    student_id UUID,
    course_id UUID,
    status TEXT,
    progress INT,
    lesson_progress MAP<TEXT, INT>,
    completed_lessons MAP<TEXT, BOOLEAN>,
    lesson_last_accessed MAP<TEXT, TIMESTAMP>,
    total_time_spent INT,
    order_id TEXT,
    enrolled_at TIMESTAMP,
    last_accessed_at TIMESTAMP,
    completed_at TIMESTAMP,
    version INT,
    PRIMARY KEY ((student_id), course_id)
)
"""

# Lookup: students per course (for course stats and instructor listings)
ENROLLMENTS_BY_COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments_by_course (
    course_id UUID,
    student_id UUID,
    status TEXT,
    progress INT,
    total_time_spent INT,
    enrolled_at TIMESTAMP,
    last_accessed_at TIMESTAMP,
    completed_at TIMESTAMP,
    PRIMARY KEY ((course_id), student_id)
)
"""

ENROLLMENTS_TABLES_CQL = [
    ENROLLMENTS_TABLE_CQL,
    ENROLLMENTS_BY_COURSE_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class Enrollment:
    """A student's enrollment in one course.

    Attributes:
        student_id: Student UUID
        course_id: Course UUID
        status: active, completed or cancelled
        progress: Overall completion percentage (0-100), derived
        lesson_progress: lesson ID -> per-lesson percentage
        completed_lessons: lesson ID -> completion flag
        lesson_last_accessed: lesson ID -> last access time
        total_time_spent: Accumulated minutes
        order_id: Purchase reference, if the enrollment came from an order
        completed_at: Set once, when progress first reaches 100
        version: Optimistic concurrency token
    """

    def __init__(
        self,
        student_id: UUID,
        course_id: UUID,
        status: str = EnrollmentStatus.ACTIVE.value,
        progress: int = 0,
        lesson_progress: dict[str, int] | None = None,
        completed_lessons: dict[str, bool] | None = None,
        lesson_last_accessed: dict[str, datetime] | None = None,
        total_time_spent: int = 0,
        order_id: str | None = None,
        enrolled_at: datetime | None = None,
        last_accessed_at: datetime | None = None,
        completed_at: datetime | None = None,
        version: int = 0,
    ):
        now = datetime.now(UTC)
        self.student_id = student_id
        self.course_id = course_id
        self.status = status
        self.progress = progress
        self.lesson_progress = dict(lesson_progress or {})
        self.completed_lessons = dict(completed_lessons or {})
        self.lesson_last_accessed = {
            lesson: ensure_utc_aware(at)
            for lesson, at in (lesson_last_accessed or {}).items()
        }
        self.total_time_spent = total_time_spent
        self.order_id = order_id
        self.enrolled_at = ensure_utc_aware(enrolled_at) or now
        self.last_accessed_at = ensure_utc_aware(last_accessed_at) or now
        self.completed_at = ensure_utc_aware(completed_at)
        self.version = version

    @property
    def is_enrolled(self) -> bool:
        """Active and completed enrollments count; cancelled ones do not."""
        return self.status in ENROLLED_STATUSES

    @property
    def is_completed(self) -> bool:
        return self.status == EnrollmentStatus.COMPLETED.value

    def apply_lesson_update(
        self,
        lesson_id: str,
        progress: int | None = None,
        completed: bool | None = None,
        time_spent_seconds: float | None = None,
        now: datetime | None = None,
    ) -> None:
        """Apply a lesson-level update and recompute the derived fields.

        Overall progress is the share of lessons in ``completed_lessons``
        flagged true; with no entries it is left unchanged. Reaching 100
        completes the enrollment once. A completed enrollment stays at 100.
        """
        now = now or datetime.now(UTC)

        if progress is not None:
            self.lesson_progress[lesson_id] = progress
        if completed is not None:
            self.completed_lessons[lesson_id] = completed

        self.lesson_last_accessed[lesson_id] = now
        self.last_accessed_at = now

        if time_spent_seconds is not None:
            self.total_time_spent += round_half_up(time_spent_seconds / 60)

        if self.completed_at is not None:
            self.progress = COMPLETE_PROGRESS
            return

        touched = len(self.completed_lessons)
        if touched:
            done = sum(1 for flag in self.completed_lessons.values() if flag)
            self.progress = round_half_up(100 * done / touched)

        if self.progress == COMPLETE_PROGRESS:
            self.status = EnrollmentStatus.COMPLETED.value
            self.completed_at = now

    @classmethod
    def from_row(cls, row: Any) -> "Enrollment":
        """Create Enrollment instance from Cassandra row."""
        return cls(
            student_id=row.student_id,
            course_id=row.course_id,
            status=row.status or EnrollmentStatus.ACTIVE.value,
            progress=row.progress or 0,
            lesson_progress=row.lesson_progress,
            completed_lessons=row.completed_lessons,
            lesson_last_accessed=row.lesson_last_accessed,
            total_time_spent=row.total_time_spent or 0,
            order_id=row.order_id,
            enrolled_at=row.enrolled_at,
            last_accessed_at=row.last_accessed_at,
            completed_at=row.completed_at,
            version=row.version or 0,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "student_id": self.student_id,
            "course_id": self.course_id,
            "status": self.status,
            "progress": self.progress,
            "lesson_progress": self.lesson_progress,
            "completed_lessons": self.completed_lessons,
            "lesson_last_accessed": self.lesson_last_accessed,
            "total_time_spent": self.total_time_spent,
            "order_id": self.order_id,
            "enrolled_at": self.enrolled_at,
            "last_accessed_at": self.last_accessed_at,
            "completed_at": self.completed_at,
        }

    def __repr__(self) -> str:
        return (
            f"<Enrollment student={self.student_id} course={self.course_id} "
            f"{self.status} {self.progress}%>"
        )


class CourseEnrollment:
    """Per-course lookup row (summary of an Enrollment)."""

    def __init__(
        self,
        course_id: UUID,
        student_id: UUID,
        status: str,
        progress: int = 0,
        total_time_spent: int = 0,
        enrolled_at: datetime | None = None,
        last_accessed_at: datetime | None = None,
        completed_at: datetime | None = None,
    ):
        self.course_id = course_id
        self.student_id = student_id
        self.status = status
        self.progress = progress
        self.total_time_spent = total_time_spent
        self.enrolled_at = ensure_utc_aware(enrolled_at)
        self.last_accessed_at = ensure_utc_aware(last_accessed_at)
        self.completed_at = ensure_utc_aware(completed_at)

    @classmethod
    def from_row(cls, row: Any) -> "CourseEnrollment":
        return cls(
            course_id=row.course_id,
            student_id=row.student_id,
            status=row.status,
            progress=row.progress or 0,
            total_time_spent=row.total_time_spent or 0,
            enrolled_at=row.enrolled_at,
            last_accessed_at=row.last_accessed_at,
            completed_at=row.completed_at,
        )


def summarize_enrollments(
    enrollments: list[Enrollment] | list[CourseEnrollment],
) -> dict[str, Any]:
    """Reduce enrollments to counts, mean progress and total time.

    Returns all zeros for an empty list.
    """
    total = len(enrollments)
    if total == 0:
        return {
            "total_enrollments": 0,
            "active_enrollments": 0,
            "completed_enrollments": 0,
            "average_progress": 0.0,
            "total_time_spent": 0,
        }

    return {
        "total_enrollments": total,
        "active_enrollments": sum(
            1 for e in enrollments if e.status == EnrollmentStatus.ACTIVE.value
        ),
        "completed_enrollments": sum(
            1 for e in enrollments if e.status == EnrollmentStatus.COMPLETED.value
        ),
        "average_progress": sum(e.progress for e in enrollments) / total,
        "total_time_spent": sum(e.total_time_spent for e in enrollments),
    }
