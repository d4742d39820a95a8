"""
Orders API Endpoints

Paginated, searchable orders listing.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from sales_analytics.ingestion import DashboardRefresher
from sales_analytics.transformation import OrderSort, list_orders
from sales_analytics.transformation.listing import DEFAULT_PAGE_SIZE
from sales_analytics.transformation.views import OrderPage
from ..dependencies import get_refresher

router = APIRouter()


@router.get("", response_model=OrderPage)
async def get_orders(
    search: Optional[str] = Query(None, description="Match on order id, product, SKU or buyer"),
    shipping_type: Optional[str] = Query(None),
    sort: OrderSort = Query(OrderSort.DATE),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
    refresher: DashboardRefresher = Depends(get_refresher),
) -> OrderPage:
    """List orders, newest first by default"""
    batch = await refresher.current()
    return list_orders(
        batch.orders,
        search=search,
        shipping_type=shipping_type,
        sort_by=sort,
        page=page,
        page_size=page_size,
    )
