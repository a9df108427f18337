"""Tests for each module's service-error to HTTP conversion."""

import pytest

from learnhub.categories.dependencies import handle_category_error
from learnhub.categories.service import (
    CategoryNotFoundError,
    InvalidCategoryNameError,
)
from learnhub.core.exceptions import (
    ConcurrentUpdateError,
    ServiceError,
    to_http_exception,
)
from learnhub.enrollments.dependencies import handle_enrollment_error
from learnhub.enrollments.service import (
    AlreadyEnrolledError,
    CannotUnenrollCompletedError,
    EnrollmentNotFoundError,
)
from learnhub.gamification.dependencies import handle_gamification_error
from learnhub.reviews.dependencies import handle_review_error
from learnhub.reviews.service import (
    AlreadyReviewedError,
    NotReviewAuthorError,
    ReviewNotFoundError,
)
from learnhub.security_log.dependencies import handle_security_log_error
from learnhub.security_log.service import SecurityEventNotFoundError
from learnhub.support.dependencies import handle_support_error
from learnhub.support.service import (
    TicketAccessDeniedError,
    TicketNotFoundError,
    TicketNotRateableError,
)
from learnhub.wishlist.dependencies import handle_wishlist_error


@pytest.mark.parametrize(
    "handler,error,status_code",
    [
        (handle_enrollment_error, EnrollmentNotFoundError(), 404),
        (handle_enrollment_error, AlreadyEnrolledError(), 409),
        (handle_enrollment_error, CannotUnenrollCompletedError(), 400),
        (handle_enrollment_error, ConcurrentUpdateError(), 409),
        (handle_gamification_error, ConcurrentUpdateError(), 409),
        (handle_category_error, CategoryNotFoundError(), 404),
        (handle_category_error, InvalidCategoryNameError(), 400),
        (handle_review_error, ReviewNotFoundError(), 404),
        (handle_review_error, AlreadyReviewedError(), 409),
        (handle_review_error, NotReviewAuthorError(), 403),
        (handle_support_error, TicketNotFoundError(), 404),
        (handle_support_error, TicketAccessDeniedError(), 403),
        (handle_support_error, TicketNotRateableError(), 400),
        (handle_support_error, ConcurrentUpdateError(), 409),
        (handle_wishlist_error, ConcurrentUpdateError(), 409),
        (handle_security_log_error, SecurityEventNotFoundError(), 404),
    ],
)
def test_module_status_maps(handler, error: ServiceError, status_code: int) -> None:
    exc = handler(error)

    assert exc.status_code == status_code
    assert exc.detail == error.message


def test_unmapped_code_uses_error_class_status() -> None:
    exc = handle_review_error(TicketNotFoundError())
    assert exc.status_code == 404


def test_status_map_overrides_error_class_status() -> None:
    exc = to_http_exception(AlreadyEnrolledError(), {"already_enrolled": 422})
    assert exc.status_code == 422


def test_plain_service_error_is_500() -> None:
    assert to_http_exception(ServiceError("boom")).status_code == 500
