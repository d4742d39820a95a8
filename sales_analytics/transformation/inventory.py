"""
Stock Coverage Calculator

Cross-references the stock snapshot with recent order history to estimate
sales velocity and how many days current stock will last.

Velocity is units sold per *active* sales day in the trailing window, not
per calendar day, so intermittent sellers and items that were out of stock
for part of the window are not understated.
"""

import math
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import List, Optional, Sequence

import polars as pl
import structlog

from sales_analytics.config import get_settings
from .labels import label
from .records import StockItem
from .views import CoverageStatus, StockCoverageRow, StockOverview

logger = structlog.get_logger(__name__)


class StockSort(str, Enum):
    """Stock table sort orders"""
    COVERAGE = "coverage"  # ascending, most urgent first
    STOCK = "stock"  # descending
    VELOCITY = "velocity"  # descending
    NAME = "name"


@dataclass(frozen=True)
class CoverageThresholds:
    """Velocity window and classification cut-offs, in days"""
    window_days: int = 90
    alert_days: int = 15
    watch_days: int = 30
    infinite_days: int = 999

    @classmethod
    def from_settings(cls) -> "CoverageThresholds":
        stock = get_settings().stock
        return cls(
            window_days=stock.velocity_window_days,
            alert_days=stock.alert_days,
            watch_days=stock.watch_days,
            infinite_days=stock.infinite_coverage_days,
        )


class StockCoverageCalculator:
    """
    Computes coverage rows for a stock snapshot.

    Example:
        calculator = StockCoverageCalculator()
        rows = calculator.calculate(stock_items, orders_frame, today)
    """

    def __init__(self, thresholds: Optional[CoverageThresholds] = None, locale: str = "en"):
        self.thresholds = thresholds or CoverageThresholds.from_settings()
        self.locale = locale

    def recent_orders(self, frame: pl.DataFrame, today: date) -> pl.DataFrame:
        """Orders dated within the trailing velocity window"""
        cutoff = today - timedelta(days=self.thresholds.window_days)
        return frame.filter(pl.col("date").is_not_null() & (pl.col("date") >= cutoff))

    def days_of_coverage(self, current_stock: int, daily_velocity: float) -> int:
        """
        Days the stock lasts at the given velocity.

        Stock that is not selling gets the "infinite" sentinel; no stock
        means no coverage. Halves round up.
        """
        if daily_velocity > 0:
            return math.floor(current_stock / daily_velocity + 0.5)
        if current_stock > 0:
            return self.thresholds.infinite_days
        return 0

    def classify(self, current_stock: int, coverage: int) -> CoverageStatus:
        if current_stock == 0:
            return CoverageStatus.OUT_OF_STOCK
        if coverage < self.thresholds.alert_days:
            return CoverageStatus.ALERT
        if coverage < self.thresholds.watch_days:
            return CoverageStatus.WATCH
        return CoverageStatus.HEALTHY

    def _matching(self, recent: pl.DataFrame, item: StockItem) -> pl.DataFrame:
        """Orders for an item, matched by item id or SKU"""
        condition = None
        if item.item_id:
            condition = pl.col("item_id") == item.item_id
        if item.sku:
            by_sku = pl.col("sku") == item.sku
            condition = by_sku if condition is None else condition | by_sku
        if condition is None:
            return recent.clear()
        return recent.filter(condition)

    def coverage_row(self, item: StockItem, recent: pl.DataFrame) -> StockCoverageRow:
        matched = self._matching(recent, item)
        sale_days = matched["date"].n_unique() if not matched.is_empty() else 0
        units_sold = int(matched["quantity"].sum() or 0)
        daily_velocity = units_sold / sale_days if sale_days > 0 else 0.0
        coverage = self.days_of_coverage(item.available_stock, daily_velocity)

        return StockCoverageRow(
            item_id=item.item_id,
            sku=item.sku,
            title=item.title or label("untitled", self.locale),
            status=item.status,
            current_stock=item.available_stock,
            price=item.price,
            units_sold=units_sold,
            sale_days=sale_days,
            daily_velocity=daily_velocity,
            days_of_coverage=coverage,
            stock_value=item.available_stock * item.price,
            coverage_status=self.classify(item.available_stock, coverage),
        )

    def calculate(
        self,
        stock: Sequence[StockItem],
        frame: pl.DataFrame,
        today: date,
    ) -> List[StockCoverageRow]:
        """
        Coverage rows for every stock item, in snapshot order.

        Args:
            stock: Normalized stock snapshot
            frame: Canonical order frame (full history; windowed here)
            today: Reference date for the trailing window
        """
        recent = self.recent_orders(frame, today)
        rows = [self.coverage_row(item, recent) for item in stock]
        logger.debug(
            "Stock coverage calculated",
            items=len(rows),
            recent_orders=recent.height,
            window_days=self.thresholds.window_days,
        )
        return rows

    def overview(self, rows: List[StockCoverageRow]) -> StockOverview:
        """
        Rows plus headline KPIs.

        Alert items are the rows classified ALERT: in stock with coverage
        under the alert threshold, including coverage that rounds to 0.
        The ALERT status filter selects the same rows.
        """
        return StockOverview(
            window_days=self.thresholds.window_days,
            total_items=len(rows),
            alert_items=sum(1 for r in rows if r.coverage_status == CoverageStatus.ALERT),
            out_of_stock=sum(1 for r in rows if r.current_stock == 0),
            total_stock_value=sum(r.stock_value for r in rows),
            rows=rows,
        )


def filter_stock(
    rows: List[StockCoverageRow],
    search: Optional[str] = None,
    status: Optional[CoverageStatus] = None,
) -> List[StockCoverageRow]:
    """Text search over title/SKU and coverage-status filter"""
    if search:
        needle = search.casefold()
        rows = [r for r in rows if needle in r.title.casefold() or needle in r.sku.casefold()]
    if status is not None:
        rows = [r for r in rows if r.coverage_status == status]
    return rows


def sort_stock(rows: List[StockCoverageRow], sort_by: StockSort = StockSort.COVERAGE) -> List[StockCoverageRow]:
    if sort_by == StockSort.COVERAGE:
        return sorted(rows, key=lambda r: r.days_of_coverage)
    if sort_by == StockSort.STOCK:
        return sorted(rows, key=lambda r: r.current_stock, reverse=True)
    if sort_by == StockSort.VELOCITY:
        return sorted(rows, key=lambda r: r.daily_velocity, reverse=True)
    return sorted(rows, key=lambda r: r.title.casefold())
