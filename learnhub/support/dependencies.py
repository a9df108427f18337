"""FastAPI dependencies for support tickets."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from learnhub.core.exceptions import ServiceError, to_http_exception

from .service import SupportService


async def get_support_service(request: Request) -> SupportService:
    """Get support service from app state."""
    app_state = request.app.state
    if not getattr(app_state, "support_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Support service not available",
        )
    return app_state.support_service


SupportServiceDep = Annotated[SupportService, Depends(get_support_service)]


def handle_support_error(error: ServiceError) -> HTTPException:
    """Convert support errors to HTTP exceptions.

    Args:
        error: Support service error

    Returns:
        HTTPException with appropriate status code
    """
    status_map = {
        "ticket_not_found": status.HTTP_404_NOT_FOUND,
        "ticket_access_denied": status.HTTP_403_FORBIDDEN,
        "ticket_not_rateable": status.HTTP_400_BAD_REQUEST,
        "concurrent_update": status.HTTP_409_CONFLICT,
    }
    return to_http_exception(error, status_map)
