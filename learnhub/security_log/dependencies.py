"""FastAPI dependencies for security event logging."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from learnhub.core.exceptions import ServiceError, to_http_exception

from .service import SecurityLogService


async def get_security_log_service(request: Request) -> SecurityLogService:
    """Get security log service from app state."""
    service = getattr(request.app.state, "security_log_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Security log service not available",
        )
    return service


SecurityLogServiceDep = Annotated[
    SecurityLogService, Depends(get_security_log_service)
]


def handle_security_log_error(error: ServiceError) -> HTTPException:
    status_map = {"security_event_not_found": status.HTTP_404_NOT_FOUND}
    return to_http_exception(error, status_map)
