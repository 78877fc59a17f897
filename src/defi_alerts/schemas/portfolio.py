"""Portfolio snapshot returned by the portfolio data provider."""
from datetime import datetime

from pydantic import BaseModel, Field

from defi_alerts.utils import utcnow


class PortfolioToken(BaseModel):
    """One token holding. ``usd`` is the USD figure alerts compare against."""

    symbol: str | None = None
    usd: float | None = None
    address: str | None = None
    balance: str | None = None
    decimals: int = 18
    network: str | None = None


class PortfolioBalance(BaseModel):
    """Balances for one wallet address.

    ``native`` is the USD value of native holdings not itemized in ``tokens``.
    """

    address: str
    native: float = 0.0
    tokens: list[PortfolioToken] = Field(default_factory=list)
    fetched_at: datetime = Field(default_factory=utcnow)

    def find_token(self, symbol: str) -> PortfolioToken | None:
        """First token whose symbol matches, case-insensitively."""
        wanted = symbol.upper()
        for token in self.tokens:
            if token.symbol and token.symbol.upper() == wanted:
                return token
        return None

    @property
    def total_usd(self) -> float:
        return self.native + sum(token.usd or 0.0 for token in self.tokens)
