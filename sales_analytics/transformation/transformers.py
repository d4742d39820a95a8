"""
Dashboard Transformer

Orchestrates one aggregation run: canonical orders and stock in, every
dashboard view out. Each run rebuilds all views from scratch; nothing is
carried over between runs.
"""

import time
from datetime import date
from typing import Optional, Sequence

import structlog

from sales_analytics.config import get_settings
from . import aggregators as agg
from .comparisons import compare_periods
from .geography import neighborhood_breakdown, region_breakdown
from .inventory import CoverageThresholds, StockCoverageCalculator
from .records import Order, StockItem, orders_to_frame
from .views import DashboardData, OrderView

logger = structlog.get_logger(__name__)


class DashboardTransformer:
    """
    Builds the full dashboard aggregate from a normalized batch.

    Example:
        transformer = DashboardTransformer()
        data = transformer.build(orders, stock, today=date(2024, 2, 10))
    """

    def __init__(
        self,
        locale: Optional[str] = None,
        top_products_limit: Optional[int] = None,
        filtered_top_limit: Optional[int] = None,
        minor_category_share: Optional[float] = None,
        thresholds: Optional[CoverageThresholds] = None,
    ):
        dashboard = get_settings().dashboard
        self.locale = locale or dashboard.locale
        self.top_products_limit = top_products_limit or dashboard.top_products_limit
        self.filtered_top_limit = filtered_top_limit or dashboard.filtered_top_limit
        self.minor_category_share = (
            minor_category_share if minor_category_share is not None else dashboard.minor_category_share
        )
        self.stock_calculator = StockCoverageCalculator(thresholds, locale=self.locale)

    def build(
        self,
        orders: Sequence[Order],
        stock: Sequence[StockItem],
        today: date,
        month: Optional[str] = None,
        year: Optional[int] = None,
        months: Optional[Sequence[str]] = None,
        generation: Optional[int] = None,
    ) -> DashboardData:
        """
        Aggregate a batch into every dashboard view.

        Args:
            orders: Normalized orders
            stock: Normalized stock snapshot
            today: Reference date for the period comparison and stock window
            month: YYYY-MM filter for the heatmap and waterfall
            year: Calendar year filter for the heatmap and waterfall
            months: YYYY-MM months for the filtered product ranking
            generation: Refresh generation the batch belongs to

        Returns:
            DashboardData
        """
        started = time.perf_counter()
        frame = orders_to_frame(orders)

        # Heatmap and waterfall honour the month/year selection
        period = agg.filter_orders(frame, months=[month] if month else None, year=year)

        top_filtered = None
        if months:
            top_filtered = agg.top_products(
                agg.filter_orders(frame, months=months),
                limit=self.filtered_top_limit,
                locale=self.locale,
            )

        coverage = self.stock_calculator.calculate(stock, frame, today)

        data = DashboardData(
            generation=generation,
            reference_date=today,
            summary=agg.summarize(frame),
            revenue_by_day=agg.revenue_by_day(frame),
            revenue_by_month=agg.revenue_by_month(frame),
            top_products=agg.top_products(frame, limit=self.top_products_limit, locale=self.locale),
            top_products_filtered=top_filtered,
            sku_performance=agg.sku_performance(frame, limit=self.top_products_limit),
            shipping_breakdown=agg.shipping_breakdown(frame),
            payment_breakdown=agg.payment_breakdown(frame, self.locale, self.minor_category_share),
            installments_breakdown=agg.installments_breakdown(frame, self.locale),
            region_breakdown=region_breakdown(frame),
            neighborhood_breakdown=neighborhood_breakdown(frame),
            heatmap=agg.sales_heatmap(period),
            waterfall=agg.financial_waterfall(period, self.locale),
            period_comparison=compare_periods(frame, today),
            stock=self.stock_calculator.overview(coverage),
            available_months=agg.available_months(frame),
            available_years=agg.available_years(frame),
            orders=[OrderView.from_order(o) for o in orders],
        )

        logger.info(
            "Dashboard aggregated",
            generation=generation,
            orders=len(orders),
            stock_items=len(stock),
            month=month,
            year=year,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return data
