# Core infrastructure
from learnhub.core.context import (
    clear_context,
    get_client_ip,
    get_context,
    get_request_id,
    get_user_id,
    set_client_ip,
    set_request_id,
    set_user_id,
)
from learnhub.core.exceptions import (
    BadRequestError,
    ConcurrentUpdateError,
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ServiceError,
    to_http_exception,
)
from learnhub.core.logging import configure_structlog, get_logger
from learnhub.core.middleware import RequestContextMiddleware


__all__ = [
    "BadRequestError",
    "ConcurrentUpdateError",
    "ConflictError",
    "ForbiddenError",
    "InvalidStateError",
    "NotFoundError",
    "RequestContextMiddleware",
    "ServiceError",
    "clear_context",
    "configure_structlog",
    "get_client_ip",
    "get_context",
    "get_logger",
    "get_request_id",
    "get_user_id",
    "set_client_ip",
    "set_request_id",
    "set_user_id",
    "to_http_exception",
]
