"""
Aggregate View Models

Derived, read-only structures returned by the aggregators and served as
JSON by the API. Each view is rebuilt from scratch on every run.
"""

from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .records import Order


class DailyPoint(BaseModel):
    """Revenue for one calendar day with orders"""
    date: date
    revenue: float
    margin: float
    orders: int


class MonthlyPoint(BaseModel):
    """Revenue for one calendar month (YYYY-MM)"""
    month: str
    revenue: float
    margin: float
    orders: int


class CategoryCount(BaseModel):
    """One bucket of a categorical breakdown"""
    category: str
    count: int
    revenue: float = 0.0
    color: Optional[str] = None


class ProductRank(BaseModel):
    """Product ranking entry"""
    name: str
    sku: str
    units: int
    revenue: float
    margin: float


class SkuPerformance(BaseModel):
    """Per-SKU profitability"""
    sku: str
    name: str
    units: int
    revenue: float
    margin: float
    fees: float
    shipping: float
    margin_pct: float


class HeatmapCell(BaseModel):
    """Day-of-week (0 = Sunday) by hour-of-day cell"""
    day: int
    hour: int
    count: int
    revenue: float


class WaterfallStep(BaseModel):
    """
    One bar of the revenue-to-margin waterfall.

    ``base`` is the running total before the step and ``bar_start`` the
    bottom of the floating bar. The total step always starts at zero.
    """
    key: str
    name: str
    value: float
    base: float
    bar_start: float
    bar: float
    running_total: float
    is_total: bool
    color: str


class PeriodSummary(BaseModel):
    """Headline metrics over a set of orders"""
    revenue: float = 0.0
    margin: float = 0.0
    fees: float = 0.0
    shipping: float = 0.0
    orders: int = 0
    units: int = 0
    margin_pct: float = 0.0
    avg_margin: float = 0.0
    avg_order_value: float = 0.0


class DayOfMonthPoint(BaseModel):
    """Dense day-of-month entry for period overlays"""
    day: int
    revenue: float = 0.0
    margin: float = 0.0
    orders: int = 0


class PeriodComparison(BaseModel):
    """Current month to date against the same days of the previous month"""
    reference_date: date
    current_month: str
    previous_month: str
    current: PeriodSummary
    previous: PeriodSummary
    changes: Dict[str, Optional[float]]
    current_by_day: List[DayOfMonthPoint]
    previous_by_day: List[DayOfMonthPoint]


class CoverageStatus(str, Enum):
    """Stock coverage classification"""
    OUT_OF_STOCK = "out_of_stock"
    ALERT = "alert"
    WATCH = "watch"
    HEALTHY = "healthy"


class StockCoverageRow(BaseModel):
    """Sales velocity and days of coverage for one stock item"""
    item_id: str
    sku: str
    title: str
    status: str
    current_stock: int
    price: float
    units_sold: int
    sale_days: int
    daily_velocity: float
    days_of_coverage: int
    stock_value: float
    coverage_status: CoverageStatus


class StockOverview(BaseModel):
    """Stock coverage rows with headline KPIs"""
    window_days: int
    total_items: int
    alert_items: int
    out_of_stock: int
    total_stock_value: float
    rows: List[StockCoverageRow]


class OrderView(BaseModel):
    """Order as exposed to the orders table"""
    order_id: str
    date: Optional[date]
    time: str
    product: str
    sku: str
    item_id: str
    quantity: int
    unit_price: float
    item_total: float
    platform_fee: float
    net_without_shipping: float
    shipping_mode: str
    logistic_type: str
    shipping_type: str
    shipment_id: str
    shipping_cost: float
    shipping_subsidy: float
    net_shipping_cost: float
    realized_margin: float
    payment_method: str
    installments: int
    buyer: str
    delivery_city: str
    delivery_region: str
    order_status: str
    shipment_status: str

    @classmethod
    def from_order(cls, order: Order) -> "OrderView":
        return cls(
            **{name: getattr(order, name) for name in cls.model_fields if name != "net_shipping_cost"},
            net_shipping_cost=order.net_shipping_cost,
        )


class OrderPage(BaseModel):
    """One page of the filtered orders listing"""
    total: int
    page: int
    pages: int
    page_size: int
    total_revenue: float
    total_margin: float
    shipping_types: List[str]
    items: List[OrderView]


class DashboardData(BaseModel):
    """Every view the dashboard renders, built from one batch"""
    generation: Optional[int] = None
    reference_date: date
    summary: PeriodSummary
    revenue_by_day: List[DailyPoint]
    revenue_by_month: List[MonthlyPoint]
    top_products: List[ProductRank]
    top_products_filtered: Optional[List[ProductRank]] = None
    sku_performance: List[SkuPerformance]
    shipping_breakdown: List[CategoryCount]
    payment_breakdown: List[CategoryCount]
    installments_breakdown: List[CategoryCount]
    region_breakdown: List[CategoryCount]
    neighborhood_breakdown: List[CategoryCount]
    heatmap: List[HeatmapCell]
    waterfall: List[WaterfallStep]
    period_comparison: PeriodComparison
    stock: StockOverview
    available_months: List[str]
    available_years: List[int]
    orders: List[OrderView] = Field(default_factory=list)
