"""
Fragrance Tracker Backend: Health Check Route
==============================================

What:  Health check endpoint for monitoring and container probes.
How:   Runs `SELECT 1` through the application's session factory and reports
       the sweep scheduler state.
Who:   Docker health checks, load balancers, monitoring.

Status levels:
    - healthy:   database reachable, scheduler running (or disabled)
    - degraded:  database reachable, scheduler enabled but not running
    - unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Request, Response, status
from sqlalchemy import text

from fragrance_tracker import __version__
from fragrance_tracker.database import async_session_factory
from fragrance_tracker.schemas.health import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    """
    Probe the database and report the scheduler state.

    The database check is a bare `SELECT 1`; it is cheap enough to run on
    every probe.
    """
    db_status = "connected"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    factory = getattr(request.app.state, "session_factory", async_session_factory)
    try:
        async with factory() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Scheduler ───────────────────────────────────────────────────
    scheduler = getattr(request.app.state, "sweep_scheduler", None)
    scheduler_state = scheduler.state if scheduler is not None else "disabled"
    if scheduler_state == "stopped" and overall == "healthy":
        overall = "degraded"

    if overall == "unhealthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        scheduler=scheduler_state,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
