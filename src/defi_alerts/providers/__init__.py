"""Portfolio data providers.

- AuraProvider: wallet balances via the AURA API

All providers implement PortfolioProviderABC, return PortfolioBalance
objects, and raise PortfolioProviderError for any upstream failure.

Example:
    async with AuraProvider() as provider:
        portfolio = await provider.get_portfolio_balance("0xabc...")
        print(f"{portfolio.address}: ${portfolio.total_usd:.2f}")
"""
from defi_alerts.providers.aura import AuraProvider
from defi_alerts.providers.core import (PortfolioProviderABC,
                                        PortfolioProviderError,
                                        ProviderErrorMapper)

__all__ = [
    "AuraProvider",
    "PortfolioProviderABC",
    "PortfolioProviderError",
    "ProviderErrorMapper",
]
