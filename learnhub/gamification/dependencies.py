"""FastAPI dependencies for gamification."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from learnhub.core.exceptions import ServiceError, to_http_exception

from .service import GamificationService


async def get_gamification_service(request: Request) -> GamificationService:
    """Get gamification service from app state."""
    app_state = request.app.state
    if not getattr(app_state, "gamification_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Gamification service not available",
        )
    return app_state.gamification_service


GamificationServiceDep = Annotated[
    GamificationService, Depends(get_gamification_service)
]


def handle_gamification_error(error: ServiceError) -> HTTPException:
    """Convert gamification errors to HTTP exceptions."""
    status_map = {
        "concurrent_update": status.HTTP_409_CONFLICT,
    }
    return to_http_exception(error, status_map)
