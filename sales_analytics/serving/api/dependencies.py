"""
Request dependencies shared by the API routes.

Tests replace these through ``app.dependency_overrides``.
"""

from sales_analytics.ingestion.refresher import DashboardRefresher, get_refresher
from sales_analytics.transformation import Clock, DashboardTransformer, SystemClock


def get_clock() -> Clock:
    return SystemClock()


def get_transformer() -> DashboardTransformer:
    return DashboardTransformer()


__all__ = ["DashboardRefresher", "get_clock", "get_refresher", "get_transformer"]
