"""FastAPI dependencies: services come from app.state.container; users from bearer tokens.

The lifespan (main.py) owns the container; these getters are used by Depends().
"""
import logging
from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from defi_alerts import config
from defi_alerts.container import Container
from defi_alerts.services import (AlertScheduler, AlertStore, NotificationBus,
                                  PortfolioService)

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


def _container(request: Request) -> Container:
    return request.app.state.container


def get_scheduler(request: Request) -> AlertScheduler:
    """Resolve the AlertScheduler singleton."""
    return _container(request).scheduler()


def get_bus(request: Request) -> NotificationBus:
    """Resolve the NotificationBus singleton."""
    return _container(request).bus()


def get_store(request: Request) -> AlertStore:
    """Resolve the alert store."""
    return _container(request).store()


def get_portfolio_service(request: Request) -> PortfolioService:
    """Resolve the PortfolioService singleton."""
    return _container(request).portfolio_service()


def decode_user_id(token: str) -> int:
    """User id from a signed JWT (``userId`` claim, falling back to ``sub``).

    Raises:
        ValueError: bad signature, expired token, or no usable user id claim.
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM]
        )
    except JWTError as exc:
        raise ValueError(f"Invalid token: {exc}") from exc
    raw = payload.get("userId", payload.get("sub"))
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError("Token has no user id") from exc


def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
) -> int:
    """Authenticated user id; 401 when the token is missing or invalid."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_user_id(credentials.credentials)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def get_optional_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
) -> int | None:
    """User id if a valid token was sent, else None (anonymous)."""
    if credentials is None:
        return None
    try:
        return decode_user_id(credentials.credentials)
    except ValueError as exc:
        logger.debug("Ignoring invalid bearer token: %s", exc)
        return None


# Type aliases for route injection
SchedulerDep = Annotated[AlertScheduler, Depends(get_scheduler)]
BusDep = Annotated[NotificationBus, Depends(get_bus)]
StoreDep = Annotated[AlertStore, Depends(get_store)]
PortfolioServiceDep = Annotated[PortfolioService, Depends(get_portfolio_service)]
CurrentUserId = Annotated[int, Depends(get_current_user_id)]
OptionalUserId = Annotated[int | None, Depends(get_optional_user_id)]
