"""
Orders listing: search, filter, sort and paginate normalized orders.
"""

import math
from datetime import date
from enum import Enum
from typing import List, Optional, Sequence

from .records import Order
from .views import OrderPage, OrderView

DEFAULT_PAGE_SIZE = 12


class OrderSort(str, Enum):
    """Orders table sort keys, all descending"""
    DATE = "date"
    MARGIN = "margin"
    TOTAL = "total"


def _matches(order: Order, needle: str) -> bool:
    return any(
        needle in field.casefold()
        for field in (order.product, order.sku, order.order_id, order.buyer)
    )


def _sort_key(sort_by: OrderSort):
    if sort_by == OrderSort.MARGIN:
        return lambda o: o.realized_margin
    if sort_by == OrderSort.TOTAL:
        return lambda o: o.item_total
    # Undated orders sink to the bottom
    return lambda o: (o.date or date.min, o.hour)


def list_orders(
    orders: Sequence[Order],
    search: Optional[str] = None,
    shipping_type: Optional[str] = None,
    sort_by: OrderSort = OrderSort.DATE,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> OrderPage:
    """
    Filter and paginate orders for the orders table.

    Args:
        orders: Normalized orders
        search: Case-insensitive match on product, SKU, order id or buyer
        shipping_type: Exact classified shipping type
        sort_by: Descending sort key
        page: 1-based page number; clamped into range
        page_size: Rows per page

    Returns:
        OrderPage with totals over the whole filtered set
    """
    selected: List[Order] = list(orders)
    if search:
        needle = search.casefold()
        selected = [o for o in selected if _matches(o, needle)]
    if shipping_type:
        selected = [o for o in selected if o.shipping_type == shipping_type]

    selected.sort(key=_sort_key(sort_by), reverse=True)

    pages = max(math.ceil(len(selected) / page_size), 1)
    page = min(max(page, 1), pages)
    start = (page - 1) * page_size

    return OrderPage(
        total=len(selected),
        page=page,
        pages=pages,
        page_size=page_size,
        total_revenue=sum(o.item_total for o in selected),
        total_margin=sum(o.realized_margin for o in selected),
        shipping_types=sorted({o.shipping_type for o in orders}),
        items=[OrderView.from_order(o) for o in selected[start:start + page_size]],
    )
