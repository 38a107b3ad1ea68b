# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Health Check and Metrics Endpoints

Endpoints:
- /api/health - Basic health check
- /health/live - Liveness probe (is the app running?)
- /health/ready - Readiness probe (is the database reachable?)
- /metrics - Prometheus exposition
"""

import logging
import time
from datetime import UTC, datetime

from fastapi import APIRouter, Response
from pydantic import BaseModel

from ..core.settings import get_settings
from ..data.postgres import ping_database
from ..observability.metrics import get_metrics

logger = logging.getLogger(__name__)

router = APIRouter()

# Track startup time for uptime calculation
_startup_time = time.time()


class ComponentHealth(BaseModel):
    """Health status of a single component."""

    status: str  # healthy, unhealthy
    latency_ms: float | None = None
    error: str | None = None


class ReadinessResponse(BaseModel):
    status: str
    version: str
    environment: str
    uptime_seconds: float
    checks: dict[str, ComponentHealth]


@router.get("/api/health")
async def health_check():
    return {"status": "ok", "message": f"{get_settings().app_name} API is running"}


@router.get("/health/live")
async def liveness_check():
    """
    Liveness probe.

    Returns 200 if the application process is running.
    Does NOT check dependencies - use /health/ready for that.
    """
    return {"status": "alive", "timestamp": datetime.now(UTC).isoformat()}


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check(response: Response):
    """
    Readiness probe.

    Returns 200 only when the database answers a trivial query, 503 otherwise.
    """
    settings = get_settings()
    database = await _check_database()

    if database.status == "healthy":
        status = "ready"
    else:
        status = "not_ready"
        response.status_code = 503

    return ReadinessResponse(
        status=status,
        version=settings.app_version,
        environment=settings.environment,
        uptime_seconds=round(time.time() - _startup_time, 2),
        checks={"database": database},
    )


async def _check_database() -> ComponentHealth:
    start = time.time()
    try:
        await ping_database()
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return ComponentHealth(
            status="unhealthy",
            latency_ms=round((time.time() - start) * 1000, 2),
            error=str(e),
        )
    return ComponentHealth(status="healthy", latency_ms=round((time.time() - start) * 1000, 2))


@router.get("/metrics")
async def prometheus_metrics():
    """Prometheus scrape endpoint."""
    metrics = get_metrics()
    return Response(content=metrics.generate_latest(), media_type=metrics.content_type)


__all__ = ["router"]
