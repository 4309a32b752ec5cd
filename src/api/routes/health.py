"""
Health Check Endpoints
"""

import logging
import resource
import sys
import time
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request, Response, status

from api.dependencies import DbSession
from core.config import settings
from core.database import check_database_connection

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Fallback when the lifespan did not run (e.g. ASGI test transports)
_IMPORTED_AT = time.monotonic()


def _memory_usage() -> dict[str, int]:
    usage = resource.getrusage(resource.RUSAGE_SELF)
    # ru_maxrss is KiB on Linux, bytes on macOS
    max_rss = usage.ru_maxrss if sys.platform == "darwin" else usage.ru_maxrss * 1024
    return {"maxRssBytes": max_rss}


@router.get("/health")
async def health_check(request: Request, response: Response, db: DbSession) -> dict[str, Any]:
    """
    Health check endpoint.

    Verifies database connectivity. Responds 200 when the database answers
    and 503 otherwise.

    Returns:
        Status, database state, uptime in seconds, memory usage,
        timestamp and version
    """
    db_healthy = await check_database_connection(db)
    if not db_healthy:
        logger.error("Health check failed: database unreachable")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    started_at = getattr(request.app.state, "started_at", _IMPORTED_AT)

    return {
        "status": "healthy" if db_healthy else "unhealthy",
        "database": "connected" if db_healthy else "disconnected",
        "uptime": round(time.monotonic() - started_at, 3),
        "memory": _memory_usage(),
        "timestamp": datetime.now(UTC).isoformat(),
        "version": settings.version,
    }
