"""Domain concept for mapping provider exceptions to HTTP responses."""
import asyncio
from dataclasses import dataclass

from fastapi import HTTPException

from defi_alerts.providers.core.exceptions import PortfolioProviderError


@dataclass(frozen=True)
class ProviderErrorMapper:
    """Maps provider/backend exceptions to HTTP (status_code, detail).

    Only the on-demand portfolio route uses this; the scheduler never lets
    provider errors reach a client.
    """

    resource_name: str = "Resource"
    api_name: str = "API"

    def to_http(
        self,
        exc: Exception,
        identifier: str | None = None,
    ) -> tuple[int, str]:
        """Map a provider exception to (status_code, detail) for HTTP responses.

        Args:
            exc: The exception raised by the provider.
            identifier: Optional identifier to include in detail (e.g. a wallet address).

        Returns:
            (status_code, detail) suitable for HTTPException(status_code=..., detail=...).
        """
        if isinstance(exc, PortfolioProviderError):
            if exc.timed_out:
                detail = "Request timed out"
                if identifier is not None:
                    detail = f"Request to {self.api_name} timed out for '{identifier}'"
                return (504, detail)
            if exc.status_code == 404:
                detail = (
                    f"{self.resource_name} not found"
                    if identifier is None
                    else f"{self.resource_name} '{identifier}' not found"
                )
                return (404, detail)
            return (502, f"{self.api_name} error")
        if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
            return (504, "Request timed out")
        if isinstance(exc, ValueError):
            return (400, str(exc) or "Invalid request")
        return (500, "Internal server error")

    def raise_http(
        self,
        exc: Exception,
        identifier: str | None = None,
    ) -> None:
        """Map provider exception to HTTP and raise HTTPException. Never returns."""
        status_code, detail = self.to_http(exc, identifier=identifier)
        raise HTTPException(status_code=status_code, detail=detail) from exc
