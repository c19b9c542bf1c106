"""
Yellow Book API: Service Info & Health Routes
==============================================

What:  GET / (service banner), GET /api/health (liveness) and
       GET /api/health/ready (readiness, pings the database).
Who:   Load balancers, container orchestration, uptime monitors.

Status levels:
    - /api/health:        always 200 {"status": "ok"} while the process answers
    - /api/health/ready:  200 when the database answers SELECT 1, else 503
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from yellowbook import __version__
from yellowbook.schemas.yellow_book import (
    HealthResponse,
    ReadinessResponse,
    RootResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/", response_model=RootResponse, summary="Service banner")
async def root() -> RootResponse:
    return RootResponse(message="Yellow Book API", version=__version__)


@router.get("/api/health", response_model=HealthResponse, summary="Liveness probe")
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc))


@router.get(
    "/api/health/ready",
    response_model=ReadinessResponse,
    responses={503: {"description": "Database unreachable", "model": ReadinessResponse}},
    summary="Readiness probe",
)
async def readiness_check(request: Request):
    """Executes SELECT 1 against the application's database."""
    if await request.app.state.database.ping():
        return ReadinessResponse(status="ready", database="connected")

    logger.warning("Readiness check failed: database unreachable")
    return JSONResponse(
        status_code=503,
        content=ReadinessResponse(status="not_ready", database="disconnected").model_dump(),
    )
