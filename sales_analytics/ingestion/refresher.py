"""
Dashboard Refresher

Owns the fetch -> normalize cycle and the latest published batch.

Refreshes may overlap (a manual refresh while the scheduled one is still
waiting on the feed). Each refresh is tagged with a monotonically
increasing generation id when it starts, and its batch is published only
if no newer refresh was started in the meantime. A slow, stale response
can therefore never overwrite a newer one.
"""

import asyncio
import contextlib
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

import structlog
from prometheus_client import Counter, Histogram

from sales_analytics.config import get_settings
from sales_analytics.transformation import DataCleaner, Order, StockItem
from .errors import DashboardError
from .upstream import UpstreamClient

logger = structlog.get_logger(__name__)


# =============================================================================
# METRICS
# =============================================================================

REFRESHES = Counter(
    "sales_dashboard_refreshes_total",
    "Dashboard refreshes by outcome",
    ["outcome"],
)

REFRESH_DURATION = Histogram(
    "sales_dashboard_refresh_seconds",
    "Time spent fetching and normalizing a batch",
)


class RefreshState(str, Enum):
    """Refresher lifecycle state"""
    LOADING = "loading"  # nothing published yet
    READY = "ready"
    EMPTY = "empty"  # published, but the feed had no orders
    ERROR = "error"  # latest refresh failed; previous batch still served


@dataclass(frozen=True)
class Batch:
    """One normalized upstream snapshot"""
    generation: int
    orders: List[Order]
    stock: List[StockItem]
    fetched_at: datetime


class DashboardRefresher:
    """
    Fetches, normalizes and publishes upstream batches.

    Example:
        refresher = DashboardRefresher()
        batch = await refresher.refresh()
    """

    def __init__(
        self,
        client: Optional[UpstreamClient] = None,
        cleaner: Optional[DataCleaner] = None,
        interval_seconds: Optional[float] = None,
    ):
        self.client = client or UpstreamClient()
        self.cleaner = cleaner or DataCleaner()
        self.interval_seconds = interval_seconds or get_settings().dashboard.refresh_interval_seconds

        self.batch: Optional[Batch] = None
        self.last_error: Optional[str] = None
        self._latest_generation = 0
        self._failed = False
        self._task: Optional[asyncio.Task] = None

    @property
    def latest_generation(self) -> int:
        """Generation id of the most recently started refresh"""
        return self._latest_generation

    @property
    def state(self) -> RefreshState:
        if self._failed:
            return RefreshState.ERROR
        if self.batch is None:
            return RefreshState.LOADING
        if not self.batch.orders:
            return RefreshState.EMPTY
        return RefreshState.READY

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _is_latest(self, generation: int) -> bool:
        return generation == self._latest_generation

    async def refresh(self) -> Batch:
        """
        Fetch and normalize one batch.

        The batch is always returned to the caller, but only published as
        the current batch if its generation is still the latest.

        Raises:
            DashboardError: If the fetch fails
        """
        self._latest_generation += 1
        generation = self._latest_generation
        started = time.perf_counter()

        logger.debug("Refresh started", generation=generation)

        try:
            payload = await self.client.fetch()
        except DashboardError as e:
            if self._is_latest(generation):
                self._failed = True
                self.last_error = e.message
                REFRESHES.labels(outcome="error").inc()
            else:
                REFRESHES.labels(outcome="stale").inc()
            logger.error(
                "Refresh failed",
                generation=generation,
                latest=self._is_latest(generation),
                error=e.message,
            )
            raise

        batch = Batch(
            generation=generation,
            orders=self.cleaner.clean_orders(payload.orders),
            stock=self.cleaner.clean_stock(payload.stock),
            fetched_at=datetime.now(timezone.utc),
        )
        REFRESH_DURATION.observe(time.perf_counter() - started)

        if not self._is_latest(generation):
            REFRESHES.labels(outcome="stale").inc()
            logger.info(
                "Discarding stale refresh",
                generation=generation,
                latest_generation=self._latest_generation,
            )
            return batch

        self.batch = batch
        self._failed = False
        self.last_error = None
        REFRESHES.labels(outcome="published").inc()
        logger.info(
            "Batch published",
            generation=generation,
            orders=len(batch.orders),
            stock=len(batch.stock),
        )
        return batch

    async def current(self) -> Batch:
        """
        Batch to serve a request from.

        With the background task running, the last published batch is
        served; otherwise every call refreshes from the feed.
        """
        if self.running and self.batch is not None:
            return self.batch
        return await self.refresh()

    async def _run(self) -> None:
        while True:
            try:
                await self.refresh()
            except DashboardError as e:
                # Already recorded in state; the next tick retries
                logger.warning("Scheduled refresh failed", error=e.message)
            except Exception as e:
                REFRESHES.labels(outcome="error").inc()
                logger.error("Scheduled refresh crashed", error=str(e), exc_info=True)
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        """Start periodic background refreshes"""
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        logger.info("Background refresh started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        """Cancel the background task"""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Background refresh stopped")

    def status(self) -> dict:
        return {
            "state": self.state.value,
            "generation": self.batch.generation if self.batch else None,
            "latest_generation": self._latest_generation,
            "orders": len(self.batch.orders) if self.batch else 0,
            "stock_items": len(self.batch.stock) if self.batch else 0,
            "fetched_at": self.batch.fetched_at.isoformat() if self.batch else None,
            "last_error": self.last_error,
            "background_refresh": self.running,
        }


# Global refresher, managed by the application lifespan
_refresher: Optional[DashboardRefresher] = None


async def init_refresher() -> DashboardRefresher:
    """Create the application refresher and start its schedule if enabled"""
    global _refresher

    if _refresher is not None:
        return _refresher

    _refresher = DashboardRefresher()
    if get_settings().dashboard.background_refresh:
        _refresher.start()
    return _refresher


async def close_refresher() -> None:
    global _refresher

    if _refresher is not None:
        await _refresher.stop()
        _refresher = None


def get_refresher() -> DashboardRefresher:
    """Get the application refresher instance"""
    if _refresher is None:
        raise RuntimeError("Refresher not initialized. Call init_refresher() first.")
    return _refresher
