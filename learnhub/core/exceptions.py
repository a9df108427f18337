"""Service error taxonomy shared by all domain modules.

Services raise subclasses of ``ServiceError``; routers translate them into
HTTP responses through each module's ``handle_*_error`` helper.
"""

from fastapi import HTTPException, status


class ServiceError(Exception):
    """Base service error."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, code: str = "service_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Resource not found", code: str = "not_found"):
        super().__init__(message, code)


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "Resource conflict", code: str = "conflict"):
        super().__init__(message, code)


class InvalidStateError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str = "Operation not allowed in the current state",
        code: str = "invalid_state",
    ):
        super().__init__(message, code)


class ForbiddenError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Access denied", code: str = "forbidden"):
        super().__init__(message, code)


class BadRequestError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Invalid request", code: str = "bad_request"):
        super().__init__(message, code)


class ConcurrentUpdateError(ConflictError):
    """Conditional update kept losing to concurrent writers."""

    def __init__(
        self,
        message: str = "Resource was modified concurrently, please retry",
    ):
        super().__init__(message, "concurrent_update")


def to_http_exception(
    error: ServiceError, status_map: dict[str, int] | None = None
) -> HTTPException:
    """Convert a service error to an HTTPException.

    ``status_map`` maps a module's error codes to statuses; codes it does
    not list fall back to the status the error class carries.
    """
    status_code = (status_map or {}).get(error.code, error.status_code)
    return HTTPException(status_code=status_code, detail=error.message)
