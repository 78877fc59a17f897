"""Models for the AURA provider (API params and response rows)."""
from pydantic import BaseModel, ConfigDict, Field


class AuraBalancesParams(BaseModel):
    """Params for /api/portfolio/balances."""

    address: str


class AuraToken(BaseModel):
    """One token row inside a network entry."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    address: str | None = None
    symbol: str | None = None
    balance: float | str | None = None
    balance_usd: float | None = Field(default=None, alias="balanceUSD")


class AuraNetwork(BaseModel):
    """Balances for one network (chain)."""

    model_config = ConfigDict(extra="ignore")

    network: dict | str | None = None
    tokens: list[AuraToken] = Field(default_factory=list)

    @property
    def network_name(self) -> str | None:
        if isinstance(self.network, dict):
            name = self.network.get("name") or self.network.get("chainId")
            return str(name) if name is not None else None
        return self.network


class AuraBalancesResponse(BaseModel):
    """Body of /api/portfolio/balances."""

    model_config = ConfigDict(extra="ignore")

    portfolio: list[AuraNetwork] = Field(default_factory=list)
