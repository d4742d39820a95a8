"""
Health Check Endpoints

Provides health and readiness checks for orchestration systems.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from sales_analytics.config import get_settings
from sales_analytics.ingestion import DashboardRefresher, RefreshState
from ..dependencies import get_refresher

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


@router.get("/health", response_model=HealthResponse)
async def health_check(refresher: DashboardRefresher = Depends(get_refresher)) -> HealthResponse:
    """
    Comprehensive health check endpoint.

    Checks:
    - Upstream feed configuration
    - State of the last refresh
    """
    settings = get_settings()
    checks = {}
    overall_status = "healthy"

    if settings.upstream.url:
        checks["upstream"] = {"status": "configured"}
    else:
        checks["upstream"] = {"status": "unconfigured"}
        overall_status = "unhealthy"

    status = refresher.status()
    checks["refresh"] = status
    if status["state"] == RefreshState.ERROR.value and overall_status == "healthy":
        overall_status = "degraded"

    return HealthResponse(
        status=overall_status,
        version=settings.version,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    """
    Kubernetes liveness probe endpoint.

    Returns 200 if the application is running.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(response: Response) -> Dict[str, str]:
    """
    Kubernetes readiness probe endpoint.

    Ready once an upstream feed URL is configured.
    """
    if not get_settings().upstream.url:
        response.status_code = 503
        return {"status": "not_ready", "reason": "upstream_unconfigured"}
    return {"status": "ready"}
