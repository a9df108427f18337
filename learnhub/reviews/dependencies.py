"""FastAPI dependencies for reviews."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from learnhub.core.exceptions import ServiceError, to_http_exception

from .service import ReviewService


async def get_review_service(request: Request) -> ReviewService:
    """Get review service from app state."""
    app_state = request.app.state
    if not getattr(app_state, "review_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Review service not available",
        )
    return app_state.review_service


ReviewServiceDep = Annotated[ReviewService, Depends(get_review_service)]


def handle_review_error(error: ServiceError) -> HTTPException:
    """Convert review errors to HTTP exceptions."""
    status_map = {
        "review_not_found": status.HTTP_404_NOT_FOUND,
        "already_reviewed": status.HTTP_409_CONFLICT,
        "not_review_author": status.HTTP_403_FORBIDDEN,
    }
    return to_http_exception(error, status_map)
