"""
Period Comparison

Month-to-date against the same days of the previous month. Comparing a
partial month with a complete one would always read as a decline, so the
previous window stops at the current day-of-month.
"""

from datetime import date
from typing import Dict, List, Optional, Tuple

import polars as pl

from .aggregators import summarize
from .views import DayOfMonthPoint, PeriodComparison, PeriodSummary

COMPARED_METRICS = [
    "revenue",
    "margin",
    "fees",
    "shipping",
    "orders",
    "units",
    "margin_pct",
    "avg_margin",
    "avg_order_value",
]


def previous_month(year: int, month: int) -> Tuple[int, int]:
    """(year, month) of the calendar month before the given one"""
    if month == 1:
        return year - 1, 12
    return year, month - 1


def percent_change(current: Optional[float], previous: Optional[float]) -> Optional[float]:
    """
    Relative change in percent.

    None when there is no previous value to compare against, which callers
    must render differently from a 0% change.
    """
    if not previous:
        return None
    return ((current or 0) - previous) / previous * 100


def _with_calendar(frame: pl.DataFrame) -> pl.DataFrame:
    return frame.filter(pl.col("date").is_not_null()).with_columns(
        pl.col("date").dt.year().alias("_year"),
        pl.col("date").dt.month().alias("_month"),
        pl.col("date").dt.day().alias("_day"),
    )


def _dense_by_day(frame: pl.DataFrame, last_day: int) -> List[DayOfMonthPoint]:
    """One entry per day 1..last_day; days without orders are zero"""
    totals = (
        frame.group_by("_day")
        .agg(
            pl.col("item_total").sum().alias("revenue"),
            pl.col("realized_margin").sum().alias("margin"),
            pl.len().alias("orders"),
        )
    )
    by_day: Dict[int, dict] = {row.pop("_day"): row for row in totals.iter_rows(named=True)}
    return [DayOfMonthPoint(day=day, **by_day.get(day, {})) for day in range(1, last_day + 1)]


def month_windows(frame: pl.DataFrame, today: date) -> Tuple[pl.DataFrame, pl.DataFrame]:
    """Current calendar month, and the previous month up to today's day-of-month"""
    dated = _with_calendar(frame)
    prev_year, prev_month = previous_month(today.year, today.month)

    current = dated.filter((pl.col("_year") == today.year) & (pl.col("_month") == today.month))
    previous = dated.filter(
        (pl.col("_year") == prev_year)
        & (pl.col("_month") == prev_month)
        & (pl.col("_day") <= today.day)
    )
    return current, previous


def compare_summaries(current: PeriodSummary, previous: PeriodSummary) -> Dict[str, Optional[float]]:
    return {
        metric: percent_change(getattr(current, metric), getattr(previous, metric))
        for metric in COMPARED_METRICS
    }


def compare_periods(frame: pl.DataFrame, today: date) -> PeriodComparison:
    """
    Build the month-over-month comparison.

    Args:
        frame: Canonical order frame
        today: Reference date (injected, never read from the wall clock here)
    """
    current, previous = month_windows(frame, today)
    prev_year, prev_month = previous_month(today.year, today.month)

    current_summary = summarize(current)
    previous_summary = summarize(previous)

    return PeriodComparison(
        reference_date=today,
        current_month=f"{today.year:04d}-{today.month:02d}",
        previous_month=f"{prev_year:04d}-{prev_month:02d}",
        current=current_summary,
        previous=previous_summary,
        changes=compare_summaries(current_summary, previous_summary),
        current_by_day=_dense_by_day(current, today.day),
        previous_by_day=_dense_by_day(previous, today.day),
    )
