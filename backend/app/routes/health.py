"""
Storefront Backend — Health Check Route
=========================================

What:  Liveness/readiness probe for Docker and load balancers.
How:   SELECT 1 against the database and the uploader's own health check.

Status levels:
    healthy:   database and uploader fine
    degraded:  database fine, uploader unavailable or circuit open
               (catalog reads still work, creates with images do not)
    unhealthy: database unreachable
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text

from app import __version__
from app.database import engine
from app.schemas.common import HealthResponse
from app.services.circuit_breaker import CircuitBreaker
from app.services.uploaders import image_uploader

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check() -> HealthResponse:
    db_status = "connected"
    uploader_status = "available"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", e)

    breaker = getattr(image_uploader, "circuit_breaker", None)
    if breaker is not None and breaker.state == CircuitBreaker.OPEN:
        uploader_status = "circuit_open"
    elif not await image_uploader.health_check():
        uploader_status = "unavailable"

    if uploader_status != "available" and overall == "healthy":
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uploader=uploader_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
