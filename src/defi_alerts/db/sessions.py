"""Database engine and session management."""
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.engine import Engine
from sqlmodel import Session, create_engine

from defi_alerts import config
from defi_alerts.db.models import (  # noqa: F401  # pylint: disable=unused-import
    AlertNotification, PortfolioAlert, SQLModel, Wallet)


def create_db_engine(database_url: str | None = None, *, echo: bool | None = None) -> Engine:
    """Synchronous engine for SQLModel (sync sessions)."""
    url = database_url or config.DATABASE_URL
    kwargs: dict = {"echo": config.SQL_ECHO if echo is None else echo}
    if not url.startswith("sqlite"):
        kwargs.update(pool_pre_ping=True, pool_size=5, max_overflow=10)
    return create_engine(url, **kwargs)


@contextmanager
def get_session(engine: Engine) -> Generator[Session, None, None]:
    """Yield a database session; commits on success, rolls back on error."""
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Engine) -> None:
    """Create all tables. Safe to call on startup (idempotent for existing tables)."""
    SQLModel.metadata.create_all(engine)
