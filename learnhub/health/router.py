"""Health check endpoints."""

import platform
import resource
import sys
import time
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import ORJSONResponse

from learnhub.config import get_settings
from learnhub.core.database import AsyncCassandraConnection


router = APIRouter(prefix="/health", tags=["health"])

_started_at = time.monotonic()


def _database_status(request: Request) -> str:
    session = getattr(request.app.state, "cassandra_session", None)
    if session is None or not AsyncCassandraConnection.is_connected():
        return "disconnected"
    return "connected"


def _basic_health(request: Request) -> dict[str, Any]:
    settings = get_settings()
    database = _database_status(request)
    return {
        "status": "healthy" if database == "connected" else "degraded",
        "timestamp": datetime.now(UTC).isoformat(),
        "uptime_seconds": round(time.monotonic() - _started_at, 3),
        "environment": settings.environment,
        "app_name": settings.app_name,
        "version": settings.app_version,
        "database": database,
    }


@router.get("")
async def health(request: Request) -> dict[str, Any]:
    """General health check endpoint."""
    return _basic_health(request)


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> ORJSONResponse:
    """Readiness probe - 503 until the database session is available."""
    if _database_status(request) != "connected":
        return ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "database": "disconnected"},
        )
    return ORJSONResponse(content={"status": "ready", "database": "connected"})


@router.get("/detailed")
async def detailed_health(request: Request) -> dict[str, Any]:
    """Basic health plus process, runtime and database details."""
    settings = get_settings()
    usage = resource.getrusage(resource.RUSAGE_SELF)
    # ru_maxrss is kilobytes on Linux, bytes on macOS
    divisor = 1024 * 1024 if sys.platform == "darwin" else 1024

    return {
        **_basic_health(request),
        "process": {
            "max_rss_mb": round(usage.ru_maxrss / divisor, 2),
            "user_cpu_seconds": round(usage.ru_utime, 3),
            "system_cpu_seconds": round(usage.ru_stime, 3),
        },
        "runtime": {
            "python_version": platform.python_version(),
            "implementation": platform.python_implementation(),
            "platform": platform.platform(),
        },
        "database_config": {
            "hosts": settings.cassandra_hosts,
            "port": settings.cassandra_port,
            "keyspace": settings.cassandra_keyspace,
        },
    }
