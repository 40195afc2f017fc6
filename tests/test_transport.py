"""Tests for server waterfalls, quote fallback and exchange parameters."""

from decimal import Decimal

import httpx
import pytest

from swapquote.errors import BelowMinimumError, ProviderProtocolError
from swapquote.routing.transport import fetch_waterfall, with_fallback
from swapquote.swap_engine.exchange_info import (
    VOLATILITY_SPREAD_DEFAULT,
    ExchangeInfoCache,
    ExchangeParameters,
)

EXCHANGE_INFO = {
    "swap": {
        "plugins": {
            "thorchain": {
                "perAssetSpread": [{"sourcePluginId": "bitcoin", "volatilitySpread": 0.02}],
                "volatilitySpread": 0.008,
                "likeKindVolatilitySpread": 0.004,
                "daVolatilitySpread": 0.01,
                "midgardServers": ["https://midgard.example"],
            }
        }
    }
}


def make_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestFetchWaterfall:
    """Tests for trying equivalent servers in order."""

    @pytest.mark.asyncio
    async def test_first_server_answers(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json={"ok": True})

        async with make_client(handler) as client:
            response = await fetch_waterfall(client, ["https://a.example", "https://b.example"], "v2/pools")

        assert response.json() == {"ok": True}
        assert seen == ["https://a.example/v2/pools"]

    @pytest.mark.asyncio
    async def test_falls_through_failures(self):
        """Test transport errors and non-2xx replies move on to the next server."""
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "a.example":
                raise httpx.ConnectError("refused", request=request)
            if request.url.host == "b.example":
                return httpx.Response(503)
            return httpx.Response(200, json=[])

        async with make_client(handler) as client:
            response = await fetch_waterfall(
                client, ["https://a.example", "https://b.example/", "https://c.example"], "/v2/pools"
            )

        assert str(response.url) == "https://c.example/v2/pools"

    @pytest.mark.asyncio
    async def test_sends_headers(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["x-client-id"] == "wallet"
            return httpx.Response(200, json=[])

        async with make_client(handler) as client:
            await fetch_waterfall(client, ["https://a.example"], "v2/pools", {"x-client-id": "wallet"})

    @pytest.mark.asyncio
    async def test_all_servers_fail(self):
        """Test the last failure is raised as a protocol error."""
        async with make_client(lambda request: httpx.Response(500)) as client:
            with pytest.raises(ProviderProtocolError) as exc_info:
                await fetch_waterfall(client, ["https://a.example", "https://b.example"], "v2/pools", provider="thorchain")

        assert exc_info.value.status_code == 500
        assert exc_info.value.url == "https://b.example/v2/pools"
        assert exc_info.value.provider == "thorchain"

    @pytest.mark.asyncio
    async def test_no_servers(self):
        async with make_client(lambda request: httpx.Response(200)) as client:
            with pytest.raises(ProviderProtocolError):
                await fetch_waterfall(client, [], "v2/pools")


class TestWithFallback:
    """Tests for the fixed-to-estimate fallback."""

    @pytest.mark.asyncio
    async def test_primary_result(self):
        async def primary():
            return "fixed"

        async def fallback():
            raise AssertionError("fallback should not run")

        assert await with_fallback(primary, fallback) == "fixed"

    @pytest.mark.asyncio
    async def test_fallback_on_protocol_error(self):
        async def primary():
            raise ProviderProtocolError("fixed rate unavailable")

        async def fallback():
            return "estimate"

        assert await with_fallback(primary, fallback) == "estimate"

    @pytest.mark.asyncio
    async def test_primary_error_surfaces_when_both_fail(self):
        async def primary():
            raise ProviderProtocolError("first")

        async def fallback():
            raise ProviderProtocolError("second")

        with pytest.raises(ProviderProtocolError, match="first"):
            await with_fallback(primary, fallback)

    @pytest.mark.asyncio
    async def test_limit_errors_not_retried(self):
        calls = []

        async def primary():
            raise BelowMinimumError("50000", "BTC")

        async def fallback():
            calls.append("fallback")
            return "estimate"

        with pytest.raises(BelowMinimumError):
            await with_fallback(primary, fallback)
        assert calls == []


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _defaults() -> ExchangeParameters:
    return ExchangeParameters(
        midgard_servers=("https://midgard.default",),
        thornode_servers=("https://thornode.default",),
        affiliate_fee_basis=50,
    )


class TestExchangeInfoCache:
    """Tests for the exchange parameter cache."""

    @pytest.mark.asyncio
    async def test_refresh_replaces_parameters(self):
        """Test a good reply replaces every field and keeps unset optional ones."""
        async with make_client(lambda request: httpx.Response(200, json=EXCHANGE_INFO)) as client:
            cache = ExchangeInfoCache(_defaults(), ["https://info.example"], clock=FakeClock(100.0))
            params = await cache.get(client)

        assert params.volatility_spread == Decimal("0.008")
        assert params.like_kind_volatility_spread == Decimal("0.004")
        assert params.midgard_servers == ("https://midgard.example",)
        assert params.thornode_servers == ("https://thornode.default",)
        assert params.per_asset_spread[0].source_plugin_id == "bitcoin"
        assert params.affiliate_fee_basis == 50
        assert params.last_refreshed_at == 100.0

    @pytest.mark.asyncio
    async def test_refreshes_at_most_once_per_interval(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request.url.path)
            return httpx.Response(200, json=EXCHANGE_INFO)

        clock = FakeClock()
        cache = ExchangeInfoCache(_defaults(), ["https://info.example"], app_id="edge", clock=clock)
        async with make_client(handler) as client:
            await cache.get(client)
            clock.now = 59
            await cache.get(client)
            clock.now = 61
            await cache.get(client)

        assert requests == ["/v1/exchangeInfo/edge", "/v1/exchangeInfo/edge"]

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_previous(self):
        """Test a failed refresh never nulls out good data."""
        replies = iter([httpx.Response(200, json=EXCHANGE_INFO), httpx.Response(500)])
        clock = FakeClock()
        cache = ExchangeInfoCache(_defaults(), ["https://info.example"], clock=clock)

        async with make_client(lambda request: next(replies)) as client:
            first = await cache.get(client)
            clock.now = 120
            assert await cache.refresh(client) is False

        assert cache.parameters is first
        assert cache.is_stale()

    @pytest.mark.asyncio
    async def test_malformed_reply_uses_defaults(self):
        async with make_client(lambda request: httpx.Response(200, json={"swap": {}})) as client:
            cache = ExchangeInfoCache(_defaults(), ["https://info.example"])
            params = await cache.get(client)

        assert params.volatility_spread == VOLATILITY_SPREAD_DEFAULT
        assert params.last_refreshed_at is None

    @pytest.mark.asyncio
    async def test_invalid_json_uses_defaults(self):
        async with make_client(lambda request: httpx.Response(200, content=b"<html>")) as client:
            cache = ExchangeInfoCache(_defaults(), ["https://info.example"])
            assert await cache.refresh(client) is False
