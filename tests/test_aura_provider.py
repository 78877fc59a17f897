"""Tests for AuraProvider over httpx.MockTransport."""
import httpx
import pytest

from defi_alerts.providers import AuraProvider, PortfolioProviderError

BALANCES = {
    "portfolio": [
        {
            "network": {"name": "Ethereum", "chainId": "1"},
            "tokens": [
                {"address": "0xeth", "symbol": "ETH", "balance": 1.5, "balanceUSD": 4650.0},
                {"address": "0xusdc", "symbol": "USDC", "balance": 1000, "balanceUSD": 1000.0},
            ],
        },
        {
            "network": {"name": "Base", "chainId": "8453"},
            "tokens": [
                {"address": "0xeth", "symbol": "ETH", "balance": 0.1, "balanceUSD": 310.0},
            ],
        },
    ]
}


def _provider(handler, api_key="secret") -> AuraProvider:
    return AuraProvider(
        api_url="https://aura.test",
        api_key=api_key,
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


class TestAuraProvider:
    @pytest.mark.asyncio
    async def test_maps_balances_across_networks(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["address"] = request.url.params["address"]
            seen["api_key"] = request.headers.get("X-API-Key")
            return httpx.Response(200, json=BALANCES)

        async with _provider(handler) as provider:
            portfolio = await provider.get_portfolio_balance("0xabc")

        assert seen == {"path": "/api/portfolio/balances", "address": "0xabc", "api_key": "secret"}
        assert portfolio.address == "0xabc"
        assert [t.symbol for t in portfolio.tokens] == ["ETH", "USDC", "ETH"]
        assert portfolio.tokens[2].network == "Base"
        assert portfolio.tokens[0].balance == "1.5"
        assert portfolio.native == 0.0
        assert portfolio.total_usd == pytest.approx(5960.0)
        assert portfolio.find_token("eth").usd == 4650.0

    @pytest.mark.asyncio
    async def test_upstream_error_is_wrapped(self):
        async with _provider(lambda request: httpx.Response(503, text="down")) as provider:
            with pytest.raises(PortfolioProviderError) as exc_info:
                await provider.get_portfolio_balance("0xabc")
        assert exc_info.value.status_code == 503
        assert not exc_info.value.timed_out

    @pytest.mark.asyncio
    async def test_timeout_is_wrapped(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        async with _provider(handler) as provider:
            with pytest.raises(PortfolioProviderError) as exc_info:
                await provider.get_portfolio_balance("0xabc")
        assert exc_info.value.timed_out

    @pytest.mark.asyncio
    async def test_connection_error_is_wrapped(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with _provider(handler) as provider:
            with pytest.raises(PortfolioProviderError):
                await provider.get_portfolio_balance("0xabc")

    @pytest.mark.asyncio
    async def test_malformed_body_is_wrapped(self):
        async with _provider(lambda request: httpx.Response(200, text="<html>")) as provider:
            with pytest.raises(PortfolioProviderError):
                await provider.get_portfolio_balance("0xabc")

        async with _provider(
            lambda request: httpx.Response(200, json={"portfolio": "nope"})
        ) as provider:
            with pytest.raises(PortfolioProviderError):
                await provider.get_portfolio_balance("0xabc")

    @pytest.mark.asyncio
    async def test_no_api_key_header_without_key(self, monkeypatch):
        monkeypatch.setattr("defi_alerts.config.AURA_API_KEY", None)
        seen = {}

        def handler(request):
            seen["api_key"] = request.headers.get("X-API-Key")
            return httpx.Response(200, json={"portfolio": []})

        async with _provider(handler, api_key=None) as provider:
            portfolio = await provider.get_portfolio_balance("0xabc")

        assert seen["api_key"] is None
        assert portfolio.tokens == []
