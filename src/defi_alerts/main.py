"""Main module for the DeFi alert notification service."""
import logging
import subprocess
import sys
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI

from defi_alerts import __version__, config
from defi_alerts.container import Container
from defi_alerts.db.sessions import init_db
from defi_alerts.routers import alerts_router, portfolio_router, sse_router

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    """Install one stream handler on the root logger at LOG_LEVEL."""
    logging.basicConfig(
        level=(level or config.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Create tables and start the scheduler at startup; drain it, then close on shutdown."""
    container: Container = fastapi_app.state.container
    init_db(container.engine())

    scheduler = container.scheduler()
    scheduler.start()

    yield

    await scheduler.aclose()
    provider = container.portfolio_provider()
    try:
        await provider.close()
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Error closing provider %s: %s", type(provider).__name__, exc)
    container.engine().dispose()


def create_app(container: Container | None = None) -> FastAPI:
    """Build the FastAPI app around ``container`` (a fresh Container by default)."""
    fastapi_app = FastAPI(
        title="DeFi Alerts",
        description="Scheduled alert evaluation and real-time notification delivery",
        version=__version__,
        lifespan=lifespan,
    )
    fastapi_app.state.container = container or Container()

    fastapi_app.include_router(alerts_router)
    fastapi_app.include_router(portfolio_router)
    fastapi_app.include_router(sse_router)

    @fastapi_app.get("/")
    def health():
        """Return health check status."""
        state: Container = fastapi_app.state.container
        return {
            "status": "ok",
            "scheduler": state.scheduler().status().model_dump(mode="json"),
            "subscribers": state.bus().subscriber_count,
        }

    return fastapi_app


app = create_app()


def run():
    """Run the server (uvicorn). Use for `poetry run start`."""
    configure_logging()
    uvicorn.run("defi_alerts.main:app", host="127.0.0.1", port=8001)


def run_dev():
    """Run the development server with Postgres running via Docker."""
    configure_logging("DEBUG")
    project_root = Path(__file__).resolve().parent.parent.parent
    try:
        subprocess.run(
            ["docker", "compose", "up", "-d", "postgres"],
            cwd=project_root,
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as e:
        print("Failed to start Postgres:", e.stderr or e.stdout, file=sys.stderr)
        sys.exit(1)
    uvicorn.run("defi_alerts.main:app", host="0.0.0.0", port=8000, reload=True)
