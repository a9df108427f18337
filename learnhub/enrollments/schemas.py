"""Pydantic schemas for enrollments.

Request and response models for:
- Enrolling in a course
- Lesson-level progress updates
- Enrollment listings and statistics
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .models import CourseEnrollment, Enrollment, EnrollmentStatus


# ==============================================================================
# Request Schemas
# ==============================================================================


class EnrollRequest(BaseModel):
    """Request to enroll in a course."""

    course_id: UUID = Field(..., description="Course UUID")
    order_id: str | None = Field(
        default=None, max_length=64, description="Purchase order reference"
    )


class UpdateProgressRequest(BaseModel):
    """Lesson-level progress update."""

    lesson_id: str = Field(..., min_length=1, max_length=64, description="Lesson ID")
    progress: int | None = Field(
        default=None, ge=0, le=100, description="Lesson progress percentage"
    )
    completed: bool | None = Field(default=None, description="Lesson completion flag")
    time_spent: float | None = Field(
        default=None, ge=0, description="Time spent on the lesson, in seconds"
    )


# ==============================================================================
# Response Schemas
# ==============================================================================


class EnrollmentResponse(BaseModel):
    """Enrollment response."""

    student_id: UUID
    course_id: UUID
    status: EnrollmentStatus
    progress: int = Field(description="Overall completion 0-100")
    lesson_progress: dict[str, int] = Field(default_factory=dict)
    completed_lessons: dict[str, bool] = Field(default_factory=dict)
    lesson_last_accessed: dict[str, datetime] = Field(default_factory=dict)
    total_time_spent: int = Field(description="Minutes spent in the course")
    order_id: str | None = None
    enrolled_at: datetime
    last_accessed_at: datetime
    completed_at: datetime | None = None

    @classmethod
    def from_entity(cls, entity: Enrollment) -> "EnrollmentResponse":
        """Create response from entity."""
        return cls(**entity.to_dict())


class EnrollmentListResponse(BaseModel):
    items: list[EnrollmentResponse]
    total: int
    page: int
    limit: int


class EnrollmentCheckResponse(BaseModel):
    enrolled: bool


class EnrollmentStatsResponse(BaseModel):
    """Enrollment statistics for a course or a student."""

    total_enrollments: int = 0
    active_enrollments: int = 0
    completed_enrollments: int = 0
    average_progress: float = 0.0
    total_time_spent: int = 0


class CourseStudentResponse(BaseModel):
    """One student's enrollment summary, as seen by course staff."""

    student_id: UUID
    status: EnrollmentStatus
    progress: int
    total_time_spent: int
    enrolled_at: datetime | None = None
    last_accessed_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def from_entity(cls, entity: CourseEnrollment) -> "CourseStudentResponse":
        return cls(
            student_id=entity.student_id,
            status=EnrollmentStatus(entity.status),
            progress=entity.progress,
            total_time_spent=entity.total_time_spent,
            enrolled_at=entity.enrolled_at,
            last_accessed_at=entity.last_accessed_at,
            completed_at=entity.completed_at,
        )


class CourseEnrollmentListResponse(BaseModel):
    items: list[CourseStudentResponse]
    total: int
    page: int
    limit: int
    stats: EnrollmentStatsResponse
