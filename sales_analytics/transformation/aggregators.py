"""
Order Aggregators

Pure transformations from the canonical order frame to the dashboard's
derived views:
- Daily and monthly revenue series
- Categorical breakdowns (shipping, payment, installments)
- Product and SKU rankings
- Day-of-week x hour heatmap
- Revenue-to-margin waterfall

All functions are read-only over their input frame. Rows with no parseable
date drop out of any date-keyed view but still count everywhere else.
"""

from typing import List, Optional, Sequence, Union

import polars as pl
import structlog

from .labels import installments_label, label, payment_label, shipping_color
from .views import (
    CategoryCount,
    DailyPoint,
    HeatmapCell,
    MonthlyPoint,
    PeriodSummary,
    ProductRank,
    SkuPerformance,
    WaterfallStep,
)

logger = structlog.get_logger(__name__)

DAYS_PER_WEEK = 7
HOURS_PER_DAY = 24

WATERFALL_COLORS = {
    "gross_revenue": "#FFE500",
    "fees": "#FF4466",
    "shipping_cost": "#FF6B35",
    "shipping_subsidy": "#44DDAA",
    "margin": "#88AAFF",
}


def column_total(frame: pl.DataFrame, column: str) -> float:
    """Sum of a numeric column; 0 for an empty frame"""
    return float(frame[column].sum() or 0)


def filter_orders(
    frame: pl.DataFrame,
    months: Optional[Sequence[str]] = None,
    year: Optional[int] = None,
) -> pl.DataFrame:
    """
    Restrict orders to the given YYYY-MM months and/or calendar year.

    Filtering happens before any aggregation; the views themselves take
    no period parameters.
    """
    if months:
        frame = frame.filter(pl.col("month").is_in(list(months)))
    if year is not None:
        frame = frame.filter(pl.col("year") == year)
    return frame


def available_months(frame: pl.DataFrame) -> List[str]:
    """Distinct YYYY-MM months present, most recent first"""
    return frame["month"].drop_nulls().unique().sort(descending=True).to_list()


def available_years(frame: pl.DataFrame) -> List[int]:
    """Distinct calendar years present, most recent first"""
    return [int(y) for y in frame["year"].drop_nulls().unique().sort(descending=True).to_list()]


def summarize(frame: pl.DataFrame) -> PeriodSummary:
    """
    Headline metrics over a set of orders.

    ``shipping`` is net of subsidies and may be negative.
    """
    orders = frame.height
    revenue = column_total(frame, "item_total")
    margin = column_total(frame, "realized_margin")

    return PeriodSummary(
        revenue=revenue,
        margin=margin,
        fees=column_total(frame, "platform_fee"),
        shipping=column_total(frame, "shipping_cost") - column_total(frame, "shipping_subsidy"),
        orders=orders,
        units=int(column_total(frame, "quantity")),
        margin_pct=(margin / revenue * 100) if revenue else 0.0,
        avg_margin=(margin / orders) if orders else 0.0,
        avg_order_value=(revenue / orders) if orders else 0.0,
    )


def _revenue_series(frame: pl.DataFrame, key: str) -> pl.DataFrame:
    return (
        frame.filter(pl.col("date").is_not_null())
        .group_by(key)
        .agg(
            pl.col("item_total").sum().alias("revenue"),
            pl.col("realized_margin").sum().alias("margin"),
            pl.len().alias("orders"),
        )
        .sort(key)
    )


def revenue_by_day(frame: pl.DataFrame) -> List[DailyPoint]:
    """Sparse daily series: only days with at least one order appear"""
    series = _revenue_series(frame, "date")
    return [DailyPoint(**row) for row in series.iter_rows(named=True)]


def revenue_by_month(frame: pl.DataFrame) -> List[MonthlyPoint]:
    """Monthly series keyed by zero-padded YYYY-MM"""
    series = _revenue_series(frame, "month")
    return [MonthlyPoint(**row) for row in series.iter_rows(named=True)]


def category_breakdown(
    frame: pl.DataFrame,
    key: Union[str, pl.Expr],
    sort_by: str = "count",
    descending: bool = True,
) -> pl.DataFrame:
    """
    Group orders by a category and count them.

    Args:
        frame: Canonical order frame
        key: Column name or expression yielding the category
        sort_by: "count" or "revenue"
        descending: Sort direction; ties keep encounter order

    Returns:
        DataFrame with category, count and revenue columns
    """
    key_expr = pl.col(key) if isinstance(key, str) else key
    return (
        frame.with_columns(key_expr.alias("category"))
        .group_by("category", maintain_order=True)
        .agg(
            pl.len().alias("count"),
            pl.col("item_total").sum().alias("revenue"),
        )
        .sort(sort_by, descending=descending, maintain_order=True)
    )


def _to_counts(breakdown: pl.DataFrame) -> List[CategoryCount]:
    return [CategoryCount(**row) for row in breakdown.iter_rows(named=True)]


def fold_minor_categories(
    counts: List[CategoryCount],
    min_share: float = 0.04,
    other_label: str = "Other",
) -> List[CategoryCount]:
    """
    Merge categories under ``min_share`` of all orders into one bucket.

    The result is sorted ascending by count, the order the horizontal bar
    chart draws in. Counts and revenue are conserved.
    """
    total = sum(c.count for c in counts)
    if total == 0:
        return []

    major = [c for c in counts if c.count / total >= min_share]
    minor = [c for c in counts if c.count / total < min_share]
    if minor:
        major.append(
            CategoryCount(
                category=other_label,
                count=sum(c.count for c in minor),
                revenue=sum(c.revenue for c in minor),
            )
        )
    return sorted(major, key=lambda c: c.count)


def shipping_breakdown(frame: pl.DataFrame) -> List[CategoryCount]:
    """Orders per classified shipping type, most frequent first"""
    counts = _to_counts(category_breakdown(frame, "shipping_type"))
    for entry in counts:
        entry.color = shipping_color(entry.category)
    return counts


def payment_breakdown(
    frame: pl.DataFrame,
    locale: str = "en",
    min_share: float = 0.04,
) -> List[CategoryCount]:
    """Orders per payment method label with the long tail folded"""
    codes = frame["payment_method"].unique().to_list()
    labels = {code: payment_label(code, locale) for code in codes if code is not None}
    key = pl.col("payment_method").replace(labels) if labels else "payment_method"
    breakdown = category_breakdown(frame, key)
    return fold_minor_categories(_to_counts(breakdown), min_share, label("other", locale))


def installments_breakdown(frame: pl.DataFrame, locale: str = "en") -> List[CategoryCount]:
    """
    Orders per installment plan.

    Ordered numerically with cash (a single installment) first, so that
    10 installments sorts after 2.
    """
    breakdown = category_breakdown(frame, "installments", sort_by="category", descending=False)
    return [
        CategoryCount(
            category=installments_label(int(row["category"]), locale),
            count=row["count"],
            revenue=row["revenue"],
        )
        for row in breakdown.iter_rows(named=True)
    ]


def top_products(
    frame: pl.DataFrame,
    limit: int = 10,
    metric: str = "revenue",
    locale: str = "en",
) -> List[ProductRank]:
    """
    Products ranked by revenue (or units), truncated to ``limit``.

    The SKU shown is the first one seen for the product.
    """
    named = frame.with_columns(
        pl.when(pl.col("product") == "")
        .then(pl.lit(label("untitled", locale)))
        .otherwise(pl.col("product"))
        .alias("name")
    )
    ranking = (
        named.group_by("name", maintain_order=True)
        .agg(
            pl.col("sku").first(),
            pl.col("quantity").sum().alias("units"),
            pl.col("item_total").sum().alias("revenue"),
            pl.col("realized_margin").sum().alias("margin"),
        )
        .sort(metric, descending=True, maintain_order=True)
        .head(limit)
    )
    return [ProductRank(**row) for row in ranking.iter_rows(named=True)]


def sku_performance(
    frame: pl.DataFrame,
    limit: Optional[int] = 10,
    sort_by: str = "revenue",
    search: Optional[str] = None,
) -> List[SkuPerformance]:
    """
    Per-SKU units, revenue, margin, fees and net shipping.

    Orders without a SKU are keyed by their truncated product name.
    """
    performance = (
        frame.group_by("sku_key", maintain_order=True)
        .agg(
            pl.col("product").first().alias("name"),
            pl.col("quantity").sum().alias("units"),
            pl.col("item_total").sum().alias("revenue"),
            pl.col("realized_margin").sum().alias("margin"),
            pl.col("platform_fee").sum().alias("fees"),
            pl.col("net_shipping_cost").sum().alias("shipping"),
        )
        .rename({"sku_key": "sku"})
        .with_columns(
            pl.when(pl.col("revenue") != 0)
            .then(pl.col("margin") / pl.col("revenue") * 100)
            .otherwise(0.0)
            .alias("margin_pct")
        )
    )

    if search:
        needle = search.lower()
        performance = performance.filter(
            pl.col("sku").str.to_lowercase().str.contains(needle, literal=True)
            | pl.col("name").str.to_lowercase().str.contains(needle, literal=True)
        )

    performance = performance.sort(sort_by, descending=True, maintain_order=True)
    if limit is not None:
        performance = performance.head(limit)
    return [SkuPerformance(**row) for row in performance.iter_rows(named=True)]


def sales_heatmap(frame: pl.DataFrame) -> List[HeatmapCell]:
    """
    Dense 7 x 24 grid of order count and revenue.

    Day 0 is Sunday. Every cell is present, zero-filled, even for an empty
    input.
    """
    counts = (
        frame.filter(pl.col("date").is_not_null())
        .with_columns((pl.col("date").dt.weekday() % DAYS_PER_WEEK).cast(pl.Int64).alias("day"))
        .group_by(["day", "hour"])
        .agg(
            pl.len().cast(pl.Int64).alias("count"),
            pl.col("item_total").sum().alias("revenue"),
        )
    )

    grid = pl.DataFrame({"day": list(range(DAYS_PER_WEEK))}, schema={"day": pl.Int64}).join(
        pl.DataFrame({"hour": list(range(HOURS_PER_DAY))}, schema={"hour": pl.Int64}),
        how="cross",
    )
    cells = (
        grid.join(counts, on=["day", "hour"], how="left")
        .with_columns(
            pl.col("count").fill_null(0),
            pl.col("revenue").fill_null(0.0),
        )
        .sort(["day", "hour"])
    )
    return [HeatmapCell(**row) for row in cells.iter_rows(named=True)]


def financial_waterfall(frame: pl.DataFrame, locale: str = "en") -> List[WaterfallStep]:
    """
    Gross revenue down to realized margin.

    The four delta steps stack on a running total. The closing margin step
    restates the recorded margin independently, so it need not equal the
    last running total (costs outside the waterfall are not modelled).
    """
    deltas = [
        ("gross_revenue", column_total(frame, "item_total")),
        ("fees", -column_total(frame, "platform_fee")),
        ("shipping_cost", -column_total(frame, "shipping_cost")),
        ("shipping_subsidy", column_total(frame, "shipping_subsidy")),
    ]

    steps: List[WaterfallStep] = []
    running = 0.0
    for key, value in deltas:
        after = running + value
        steps.append(
            WaterfallStep(
                key=key,
                name=label(key, locale),
                value=value,
                base=running,
                bar_start=min(running, after),
                bar=abs(value),
                running_total=after,
                is_total=False,
                color=WATERFALL_COLORS[key],
            )
        )
        running = after

    margin = column_total(frame, "realized_margin")
    steps.append(
        WaterfallStep(
            key="margin",
            name=label("margin", locale),
            value=margin,
            base=0.0,
            bar_start=0.0,
            bar=margin,
            running_total=margin,
            is_total=True,
            color=WATERFALL_COLORS["margin"],
        )
    )

    if abs(running - margin) > 0.005:
        logger.debug("Waterfall margin differs from stacked deltas", stacked=running, margin=margin)
    return steps
