"""
Upstream Order Feed Client

Reads the order and stock sheets from the Apps Script webapp in a single
GET. The feed answers with either a bare JSON array of order rows or an
object ``{"orders": [...], "stock": [...]}``.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
import structlog

from sales_analytics.config import get_settings
from .errors import ConfigurationError, UpstreamError

logger = structlog.get_logger(__name__)

Row = Dict[str, Any]


@dataclass
class RawPayload:
    """Unnormalized rows as received from the feed"""
    orders: List[Row] = field(default_factory=list)
    stock: List[Row] = field(default_factory=list)


def split_payload(body: Any) -> RawPayload:
    """
    Accept either feed shape.

    Raises:
        UpstreamError: If the body is neither an array nor an object with
            an ``orders`` array
    """
    if isinstance(body, list):
        return RawPayload(orders=body)

    if isinstance(body, dict) and isinstance(body.get("orders"), list):
        stock = body.get("stock")
        return RawPayload(
            orders=body["orders"],
            stock=stock if isinstance(stock, list) else [],
        )

    raise UpstreamError(f"Unexpected upstream payload of type {type(body).__name__}")


class UpstreamClient:
    """
    Async client for the order feed.

    Example:
        client = UpstreamClient()
        payload = await client.fetch()
    """

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        upstream = get_settings().upstream
        self.url = url if url is not None else upstream.url
        self.timeout = timeout or upstream.timeout_seconds
        self._transport = transport

    async def fetch(self) -> RawPayload:
        """
        Fetch the current order and stock rows.

        Raises:
            ConfigurationError: If no feed URL is configured
            UpstreamError: On network failure, non-2xx status or non-JSON body
        """
        if not self.url:
            raise ConfigurationError("APPS_SCRIPT_URL is not configured")

        started = time.perf_counter()
        try:
            # Apps Script answers with a redirect to the rendered content
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                response = await client.get(self.url)
        except httpx.HTTPError as e:
            logger.error("Upstream request failed", error=str(e))
            raise UpstreamError(f"Upstream request failed: {e}") from e

        duration_ms = round((time.perf_counter() - started) * 1000, 2)

        if not response.is_success:
            logger.error("Upstream returned error status", status_code=response.status_code, duration_ms=duration_ms)
            raise UpstreamError(
                f"Upstream returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            logger.error("Upstream returned non-JSON body", status_code=response.status_code)
            raise UpstreamError("Upstream returned a non-JSON body", status_code=response.status_code) from e

        payload = split_payload(body)
        logger.info(
            "Upstream payload fetched",
            orders=len(payload.orders),
            stock=len(payload.stock),
            duration_ms=duration_ms,
        )
        return payload
