"""
Reference date providers.

Every date-relative view (period comparison, stock velocity window) takes
"today" as an argument. The clock supplies it in the reporting timezone so
that aggregation itself never reads the wall clock.
"""

from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from sales_analytics.config import get_settings


class Clock:
    """Source of the reference date"""

    def today(self) -> date:
        raise NotImplementedError


class SystemClock(Clock):
    """Current date in the reporting timezone"""

    def __init__(self, timezone: Optional[str] = None):
        self.tz = ZoneInfo(timezone or get_settings().dashboard.timezone)

    def today(self) -> date:
        return datetime.now(self.tz).date()


class FixedClock(Clock):
    """Always returns the same date"""

    def __init__(self, fixed: date):
        self.fixed = fixed

    def today(self) -> date:
        return self.fixed
