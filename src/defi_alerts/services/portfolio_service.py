"""On-demand portfolio lookups for HTTP routes.

PortfolioService wraps a PortfolioProviderABC with error mapping, so routes
see HTTPExceptions instead of provider errors.
"""
import asyncio

from defi_alerts.providers.core import (PortfolioProviderABC,
                                        PortfolioProviderError,
                                        ProviderErrorMapper)
from defi_alerts.schemas import PortfolioBalance

# Exceptions from providers we map to HTTP; all others propagate.
_PROVIDER_EXCEPTIONS: tuple[type[Exception], ...] = (
    PortfolioProviderError,
    ValueError,
    TimeoutError,
    asyncio.TimeoutError,
)


class PortfolioService:
    """Portfolio lookups with provider errors mapped to HTTP."""

    def __init__(
        self,
        provider: PortfolioProviderABC,
        error_mapper: ProviderErrorMapper | None = None,
    ) -> None:
        self._provider = provider
        self._error_mapper = error_mapper or ProviderErrorMapper(
            resource_name="Wallet", api_name="AURA API"
        )

    async def get_portfolio(self, address: str) -> PortfolioBalance:
        """Get current balances. Raises HTTPException on provider errors."""
        address = address.strip()
        try:
            if not address:
                raise ValueError("Wallet address is required")
            return await self._provider.get_portfolio_balance(address)
        except _PROVIDER_EXCEPTIONS as e:
            self._error_mapper.raise_http(e, identifier=address)
