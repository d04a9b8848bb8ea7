"""
Atelier Backend — Health Check Route
======================================

What:  GET /health for Docker health checks and load balancers.
How:   Runs SELECT 1 against the pool and reports integration configuration.

Status levels:
    healthy    database reachable, Square and Resend configured
    degraded   database reachable, an integration is not configured
    unhealthy  database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Response
from sqlalchemy import text

from atelier import __version__
from atelier.config import settings
from atelier.database import engine
from atelier.schemas.common import HealthResponse
from atelier.studio.store import studio_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        logger.warning("Health check: database unreachable: %s", str(e))

    square = "configured" if settings.square_configured else "not_configured"
    email = "configured" if settings.resend_configured else "not_configured"

    if db_status != "connected":
        overall = "unhealthy"
        response.status_code = 503
    elif square != "configured" or email != "configured":
        overall = "degraded"
    else:
        overall = "healthy"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        square=square,
        email=email,
        studio_mode=studio_store.state.mode.value,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
