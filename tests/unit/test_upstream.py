"""
Unit Tests - Upstream Feed Client
"""
import httpx
import pytest

from sales_analytics.ingestion import ConfigurationError, UpstreamClient, UpstreamError, split_payload

FEED_URL = "https://script.google.com/macros/s/feed/exec"


def client_for(handler) -> UpstreamClient:
    return UpstreamClient(url=FEED_URL, timeout=5.0, transport=httpx.MockTransport(handler))


class TestSplitPayload:
    """Tests for feed shape handling"""

    def test_bare_array_is_orders(self):
        payload = split_payload([{"Order ID": "1"}])

        assert payload.orders == [{"Order ID": "1"}]
        assert payload.stock == []

    def test_object_with_orders_and_stock(self):
        payload = split_payload({"orders": [{"Order ID": "1"}], "stock": [{"SKU": "A"}]})

        assert len(payload.orders) == 1
        assert payload.stock == [{"SKU": "A"}]

    def test_object_without_stock(self):
        assert split_payload({"orders": []}).stock == []

    @pytest.mark.parametrize("body", [{"rows": []}, {"orders": "nope"}, "text", 42, None])
    def test_unexpected_shape(self, body):
        with pytest.raises(UpstreamError):
            split_payload(body)


class TestUpstreamClient:
    """Tests for UpstreamClient.fetch"""

    @pytest.mark.asyncio
    async def test_fetch_object(self, raw_order_rows, raw_stock_rows):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "GET"
            return httpx.Response(200, json={"orders": raw_order_rows, "stock": raw_stock_rows})

        payload = await client_for(handler).fetch()

        assert len(payload.orders) == 3
        assert len(payload.stock) == 3

    @pytest.mark.asyncio
    async def test_fetch_bare_array(self, raw_order_rows):
        payload = await client_for(lambda request: httpx.Response(200, json=raw_order_rows)).fetch()

        assert len(payload.orders) == 3
        assert payload.stock == []

    @pytest.mark.asyncio
    async def test_follows_redirect(self, raw_order_rows):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "script.google.com":
                return httpx.Response(302, headers={"Location": "https://script.googleusercontent.com/echo"})
            return httpx.Response(200, json=raw_order_rows)

        payload = await client_for(handler).fetch()

        assert len(payload.orders) == 3

    @pytest.mark.asyncio
    async def test_missing_url_is_configuration_error(self):
        with pytest.raises(ConfigurationError, match="APPS_SCRIPT_URL"):
            await UpstreamClient(url="").fetch()

    @pytest.mark.asyncio
    async def test_error_status(self):
        with pytest.raises(UpstreamError) as exc_info:
            await client_for(lambda request: httpx.Response(503, text="unavailable")).fetch()

        assert exc_info.value.status_code == 503
        assert "503" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        with pytest.raises(UpstreamError, match="non-JSON"):
            await client_for(lambda request: httpx.Response(200, text="<html>login</html>")).fetch()

    @pytest.mark.asyncio
    async def test_network_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamError) as exc_info:
            await client_for(handler).fetch()

        assert exc_info.value.status_code is None
