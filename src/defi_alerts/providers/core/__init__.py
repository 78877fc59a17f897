"""Core provider abstractions."""
from defi_alerts.providers.core.error_mapper import ProviderErrorMapper
from defi_alerts.providers.core.exceptions import PortfolioProviderError
from defi_alerts.providers.core.portfolio_provider_abc import \
    PortfolioProviderABC

__all__ = [
    "PortfolioProviderABC",
    "PortfolioProviderError",
    "ProviderErrorMapper",
]
