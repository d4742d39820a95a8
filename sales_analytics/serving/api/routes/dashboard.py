"""
Dashboard API Endpoints

Serves the fully assembled dashboard aggregate.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Response
import structlog

from sales_analytics.config import get_settings
from sales_analytics.ingestion import DashboardRefresher
from sales_analytics.transformation import Clock, DashboardTransformer
from sales_analytics.transformation.views import DashboardData
from ..dependencies import get_clock, get_refresher, get_transformer

router = APIRouter()
logger = structlog.get_logger(__name__)

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


def cache_control_header(revalidate_seconds: Optional[int] = None) -> str:
    """Shared-cache directive: fresh for N seconds, then served stale while revalidating"""
    seconds = revalidate_seconds if revalidate_seconds is not None else get_settings().dashboard.revalidate_seconds
    return f"s-maxage={seconds}, stale-while-revalidate"


@router.get("", response_model=DashboardData)
async def get_dashboard(
    response: Response,
    month: Optional[str] = Query(None, pattern=MONTH_PATTERN, description="YYYY-MM for heatmap and waterfall"),
    year: Optional[int] = Query(None, ge=2000, le=2100, description="Year for heatmap and waterfall"),
    months: Optional[List[str]] = Query(None, description="YYYY-MM months for the filtered product ranking"),
    refresher: DashboardRefresher = Depends(get_refresher),
    clock: Clock = Depends(get_clock),
    transformer: DashboardTransformer = Depends(get_transformer),
) -> DashboardData:
    """
    Full dashboard aggregate.

    Every view is rebuilt from the current batch on each call.
    """
    batch = await refresher.current()
    data = transformer.build(
        batch.orders,
        batch.stock,
        today=clock.today(),
        month=month,
        year=year,
        months=months,
        generation=batch.generation,
    )
    response.headers["Cache-Control"] = cache_control_header()
    return data


@router.get("/status")
async def get_dashboard_status(refresher: DashboardRefresher = Depends(get_refresher)) -> Dict[str, Any]:
    """Refresher state and the generation currently published"""
    return refresher.status()


@router.post("/refresh")
async def trigger_refresh(refresher: DashboardRefresher = Depends(get_refresher)) -> Dict[str, Any]:
    """Fetch a new batch now"""
    batch = await refresher.refresh()
    logger.info("Manual refresh completed", generation=batch.generation)
    return refresher.status()
