"""API routers."""
from defi_alerts.routers.alerts import router as alerts_router
from defi_alerts.routers.portfolio import router as portfolio_router
from defi_alerts.routers.sse import router as sse_router

__all__ = ["alerts_router", "portfolio_router", "sse_router"]
