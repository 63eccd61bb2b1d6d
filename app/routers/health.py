# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# Public endpoints for monitoring and load balancers.
# =============================================================================

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from starlette.concurrency import run_in_threadpool

from app.docs import API_VERSION
from app.routing import ApiRoute
from app.serialization import ApiModel
from lib.database import check_database

router = APIRouter(route_class=ApiRoute)


# =============================================================================
# Response Models
# =============================================================================

class HealthResponse(ApiModel):
    """Basic health check response."""
    status: str
    timestamp: str
    environment: str
    version: str


class ChecksResponse(ApiModel):
    """Individual dependency checks."""
    database: str


class ReadinessResponse(ApiModel):
    """Readiness check response."""
    status: str
    checks: ChecksResponse
    timestamp: str


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """
    Health check endpoint.

    Returns basic health status for load balancers and monitoring.
    """
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment=request.app.state.settings.ENVIRONMENT,
        version=API_VERSION,
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check(request: Request):
    """
    Readiness check endpoint.

    Returns whether the service can reach its database.
    """
    database = await run_in_threadpool(check_database, request.app.state.db_engine)
    checks = ChecksResponse(database=database)

    return ReadinessResponse(
        status="ready" if database == "healthy" else "degraded",
        checks=checks,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
