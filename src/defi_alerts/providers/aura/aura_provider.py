"""AURA portfolio data provider."""
import logging

import httpx

from defi_alerts import config
from defi_alerts.providers.aura.models import (AuraBalancesParams,
                                               AuraBalancesResponse)
from defi_alerts.providers.core import (PortfolioProviderABC,
                                        PortfolioProviderError)
from defi_alerts.schemas import PortfolioBalance, PortfolioToken

logger = logging.getLogger(__name__)


class AuraProvider(PortfolioProviderABC):
    """Portfolio balances via the AURA API.

    Every token row carries its own ``balanceUSD``, so ``native`` is left at 0
    and the portfolio total is the sum of the itemized tokens.
    """

    def __init__(
        self,
        api_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the AURA provider.

        Args:
            api_url: Base URL. Defaults to AURA_API_URL env var.
            api_key: API key sent as X-API-Key. Defaults to AURA_API_KEY env var.
            timeout: Request timeout in seconds. Defaults to AURA_TIMEOUT_SECONDS.
            transport: Optional httpx transport (tests pass a MockTransport).
        """
        self._api_key = api_key or config.AURA_API_KEY
        self._timeout = timeout if timeout is not None else config.AURA_TIMEOUT_SECONDS

        headers: dict[str, str] = {"Accept": "application/json"}
        if self._api_key:
            headers["X-API-Key"] = self._api_key

        self._client = httpx.AsyncClient(
            base_url=api_url or config.AURA_API_URL,
            headers=headers,
            timeout=self._timeout,
            transport=transport,
        )

    async def get_portfolio_balance(self, address: str) -> PortfolioBalance:
        """Fetch balances across all networks for an address.

        Raises:
            PortfolioProviderError: upstream error, timeout or malformed body.
        """
        params = AuraBalancesParams(address=address).model_dump()
        try:
            response = await self._client.get("/api/portfolio/balances", params=params)
            response.raise_for_status()
            body = AuraBalancesResponse.model_validate(response.json())
        except httpx.TimeoutException as exc:
            raise PortfolioProviderError(
                f"AURA API timed out for {address}", timed_out=True
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise PortfolioProviderError(
                f"AURA API error: {exc.response.status_code} {exc.response.text}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise PortfolioProviderError(f"AURA API error: {exc}") from exc
        except ValueError as exc:
            raise PortfolioProviderError(f"AURA API returned malformed data: {exc}") from exc

        tokens = [
            PortfolioToken(
                symbol=token.symbol,
                usd=token.balance_usd,
                address=token.address,
                balance=str(token.balance) if token.balance is not None else None,
                network=network.network_name,
            )
            for network in body.portfolio
            for token in network.tokens
        ]
        logger.debug("Fetched %d tokens for %s", len(tokens), address)
        return PortfolioBalance(address=address, native=0.0, tokens=tokens)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
