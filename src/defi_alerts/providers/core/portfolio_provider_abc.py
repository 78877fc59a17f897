"""Abstract base class for portfolio data providers."""
from abc import ABC, abstractmethod

from defi_alerts.schemas import PortfolioBalance


class PortfolioProviderABC(ABC):
    """Base interface for wallet portfolio data sources.

    Implementations bound every request by a timeout and raise
    PortfolioProviderError for any failure.
    """

    @abstractmethod
    async def get_portfolio_balance(self, address: str) -> PortfolioBalance:
        """Fetch current balances for a wallet address.

        Args:
            address: Wallet address (e.g. "0xabc...").

        Returns:
            A PortfolioBalance with per-token USD values.
        """

    async def close(self) -> None:
        """Clean up resources (connections, clients).

        Override in subclasses if cleanup is needed.
        """

    async def __aenter__(self) -> "PortfolioProviderABC":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        """Async context manager exit - calls close()."""
        await self.close()
