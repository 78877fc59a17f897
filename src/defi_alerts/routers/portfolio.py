"""Portfolio lookup: the balances alert evaluation sees for a wallet."""
from fastapi import APIRouter

from defi_alerts.deps import PortfolioServiceDep
from defi_alerts.schemas import PortfolioBalance

router = APIRouter(prefix="/portfolio", tags=["portfolio"])


@router.get("/{address}", response_model=PortfolioBalance)
async def get_portfolio(address: str, service: PortfolioServiceDep) -> PortfolioBalance:
    """Get current balances for a wallet address.

    Args:
        address: Wallet address (e.g. "0xabc...").

    Returns:
        Per-token USD values as returned by the portfolio provider.
    """
    return await service.get_portfolio(address)
