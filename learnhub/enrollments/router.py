"""Enrollment API endpoints.

Provides routes for:
- Enrolling and unenrolling
- Lesson progress updates
- Own enrollment listing and stats
- Course-level listings and stats for instructors and admins
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from learnhub.auth.dependencies import CurrentUser, StaffUser
from learnhub.core.exceptions import ServiceError

from .dependencies import EnrollmentServiceDep, handle_enrollment_error
from .models import EnrollmentStatus
from .schemas import (
    CourseEnrollmentListResponse,
    CourseStudentResponse,
    EnrollmentCheckResponse,
    EnrollmentListResponse,
    EnrollmentResponse,
    EnrollmentStatsResponse,
    EnrollRequest,
    UpdateProgressRequest,
)
from .service import EnrollmentNotFoundError


router = APIRouter(prefix="/v1/enrollments", tags=["enrollments"])


# ==============================================================================
# Own Enrollments
# ==============================================================================


@router.post(
    "",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll in a course",
)
async def enroll(
    data: EnrollRequest,
    service: EnrollmentServiceDep,
    user: CurrentUser,
) -> EnrollmentResponse:
    try:
        enrollment = await service.enroll(
            student_id=user.id,
            course_id=data.course_id,
            order_id=data.order_id,
        )
        return EnrollmentResponse.from_entity(enrollment)
    except ServiceError as e:
        raise handle_enrollment_error(e) from e


@router.get("/my", response_model=EnrollmentListResponse)
async def list_my_enrollments(
    service: EnrollmentServiceDep,
    user: CurrentUser,
    status_filter: EnrollmentStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> EnrollmentListResponse:
    """List own enrollments, most recently accessed first."""
    items, total = await service.list_enrollments(
        student_id=user.id,
        status=status_filter,
        page=page,
        limit=limit,
    )
    return EnrollmentListResponse(
        items=[EnrollmentResponse.from_entity(e) for e in items],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/my/stats", response_model=EnrollmentStatsResponse)
async def get_my_stats(
    service: EnrollmentServiceDep,
    user: CurrentUser,
) -> EnrollmentStatsResponse:
    return EnrollmentStatsResponse(**await service.get_user_stats(user.id))


@router.get("/course/{course_id}", response_model=EnrollmentResponse)
async def get_my_enrollment(
    course_id: UUID,
    service: EnrollmentServiceDep,
    user: CurrentUser,
) -> EnrollmentResponse:
    enrollment = await service.get_enrollment(user.id, course_id)
    if enrollment is None:
        raise handle_enrollment_error(EnrollmentNotFoundError())
    return EnrollmentResponse.from_entity(enrollment)


@router.get("/course/{course_id}/check", response_model=EnrollmentCheckResponse)
async def check_enrollment(
    course_id: UUID,
    service: EnrollmentServiceDep,
    user: CurrentUser,
) -> EnrollmentCheckResponse:
    """Whether the caller is enrolled (cancelled enrollments do not count)."""
    return EnrollmentCheckResponse(
        enrolled=await service.is_enrolled(user.id, course_id)
    )


@router.patch(
    "/course/{course_id}/progress",
    response_model=EnrollmentResponse,
    summary="Update lesson progress",
)
async def update_progress(
    course_id: UUID,
    data: UpdateProgressRequest,
    service: EnrollmentServiceDep,
    user: CurrentUser,
) -> EnrollmentResponse:
    """Record lesson progress; completes the course when every touched
    lesson is complete."""
    try:
        enrollment = await service.update_progress(
            student_id=user.id,
            course_id=course_id,
            lesson_id=data.lesson_id,
            progress=data.progress,
            completed=data.completed,
            time_spent_seconds=data.time_spent,
        )
        return EnrollmentResponse.from_entity(enrollment)
    except ServiceError as e:
        raise handle_enrollment_error(e) from e


@router.delete("/course/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unenroll(
    course_id: UUID,
    service: EnrollmentServiceDep,
    user: CurrentUser,
) -> None:
    try:
        await service.unenroll(user.id, course_id)
    except ServiceError as e:
        raise handle_enrollment_error(e) from e


# ==============================================================================
# Course Staff
# ==============================================================================


@router.get(
    "/course/{course_id}/students",
    response_model=CourseEnrollmentListResponse,
    summary="List course enrollments (instructors and admins)",
)
async def list_course_enrollments(
    course_id: UUID,
    service: EnrollmentServiceDep,
    _staff: StaffUser,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> CourseEnrollmentListResponse:
    result = await service.list_course_enrollments(course_id, page=page, limit=limit)
    return CourseEnrollmentListResponse(
        items=[CourseStudentResponse.from_entity(e) for e in result["items"]],
        total=result["total"],
        page=page,
        limit=limit,
        stats=EnrollmentStatsResponse(**result["stats"]),
    )


@router.get("/course/{course_id}/stats", response_model=EnrollmentStatsResponse)
async def get_course_stats(
    course_id: UUID,
    service: EnrollmentServiceDep,
    _staff: StaffUser,
) -> EnrollmentStatsResponse:
    return EnrollmentStatsResponse(**await service.get_course_stats(course_id))
