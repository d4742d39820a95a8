"""
Stock API Endpoints

Stock coverage table with search, status filter and sorting.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from sales_analytics.ingestion import DashboardRefresher
from sales_analytics.transformation import Clock, DashboardTransformer, orders_to_frame
from sales_analytics.transformation.inventory import StockSort, filter_stock, sort_stock
from sales_analytics.transformation.views import CoverageStatus, StockOverview
from ..dependencies import get_clock, get_refresher, get_transformer

router = APIRouter()


@router.get("", response_model=StockOverview)
async def get_stock(
    search: Optional[str] = Query(None, description="Match on title or SKU"),
    status: Optional[CoverageStatus] = Query(None),
    sort: StockSort = Query(StockSort.COVERAGE),
    refresher: DashboardRefresher = Depends(get_refresher),
    clock: Clock = Depends(get_clock),
    transformer: DashboardTransformer = Depends(get_transformer),
) -> StockOverview:
    """
    Stock coverage rows.

    KPIs cover the whole snapshot; only the rows are filtered.
    """
    batch = await refresher.current()
    calculator = transformer.stock_calculator
    rows = calculator.calculate(batch.stock, orders_to_frame(batch.orders), clock.today())
    overview = calculator.overview(rows)
    overview.rows = sort_stock(filter_stock(rows, search=search, status=status), sort)
    return overview
