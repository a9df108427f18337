"""FastAPI dependencies for authentication.

Provides dependency injection for:
- Current user extraction from JWT
- Role-based access control
- Recording rejected access attempts as security events
"""

from typing import Annotated

import structlog
from fastapi import Depends, HTTPException, Request, status
from jose import JWTError
from pydantic import ValidationError

from learnhub.core.context import set_user_id
from learnhub.core.middleware import get_client_ip
from learnhub.security_log.models import SecurityEventType, ThreatLevel

from .permissions import UserRole, has_permission
from .schemas import Principal
from .security import decode_access_token


logger = structlog.get_logger(__name__)


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header.

    Returns:
        Token string or None if not present or malformed
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


def record_unauthorized_access(
    request: Request,
    description: str,
    user_id: str | None = None,
    threat_level: ThreatLevel = ThreatLevel.MEDIUM,
) -> None:
    """Hand a rejected request to the security logger, if it is running.

    The write is scheduled in the background so the 401 or 403 goes out
    without waiting on storage.
    """
    security_logger = getattr(request.app.state, "security_log_service", None)
    if security_logger is None:
        return

    security_logger.record(
        event_type=SecurityEventType.UNAUTHORIZED_ACCESS,
        threat_level=threat_level,
        ip_address=get_client_ip(request) or "unknown",
        description=description,
        user_id=user_id,
        endpoint=request.url.path,
        method=request.method,
        user_agent=request.headers.get("user-agent"),
    )


async def get_current_user(
    request: Request,
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> Principal:
    """Get current authenticated user from JWT token.

    Raises:
        HTTPException(401): If token is missing, invalid, or expired
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token not provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(token)
        user = Principal(
            id=payload["sub"],
            role=payload["role"],
            email=payload.get("email"),
        )
    except (JWTError, ValidationError) as e:
        logger.warning("invalid_access_token", error=str(e))
        record_unauthorized_access(request, "Invalid or expired access token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    set_user_id(user.id)
    return user


def require_permission(required_role: UserRole):
    """Create dependency requiring at least a permission level.

    Uses hierarchical comparison: SUPER_ADMIN >= ADMIN >= INSTRUCTOR >= STUDENT
    """

    async def permission_checker(
        request: Request,
        user: Annotated[Principal, Depends(get_current_user)],
    ) -> Principal:
        if not has_permission(user.role, required_role):
            record_unauthorized_access(
                request,
                f"Role '{user.role.value}' below required '{required_role.value}'",
                user_id=str(user.id),
                threat_level=ThreatLevel.LOW,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return permission_checker


# ==============================================================================
# Type Aliases for Cleaner Code
# ==============================================================================

CurrentUser = Annotated[Principal, Depends(get_current_user)]
StaffUser = Annotated[Principal, Depends(require_permission(UserRole.INSTRUCTOR))]
AdminUser = Annotated[Principal, Depends(require_permission(UserRole.ADMIN))]
