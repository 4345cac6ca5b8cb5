"""FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from stockpulse import __version__
from stockpulse.api import api_router
from stockpulse.config import get_settings
from stockpulse.core.dependencies import DbDep
from stockpulse.core.logging import get_logger, setup_logging
from stockpulse.services import service_lifespan

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: connects services and (optionally) the scheduler."""
    settings = get_settings()
    setup_logging(settings)

    async with service_lifespan(settings) as state:
        app.state.services = state
        app.state.pipeline = state.pipeline
        logger.info(
            "StockPulse ready",
            env=settings.env,
            scheduler=state.scheduler is not None,
        )
        yield


app = FastAPI(
    title="StockPulse",
    description="Daily KOSPI / NASDAQ news aggregation with AI summaries and stock picks",
    version=__version__,
    lifespan=lifespan,
)

# Infrastructure (no prefix, not versioned)


@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness check: always ok if process is running."""
    return {"status": "ok"}


@app.get("/ready")
async def ready(db: DbDep) -> dict[str, str]:
    """Readiness check: verifies the database is reachable."""
    try:
        await db.ping()
        checks = {"db": "ok"}
    except Exception:
        checks = {"db": "error"}
    status = "ready" if all(v != "error" for v in checks.values()) else "not_ready"
    return {"status": status, **checks}


# Domain API
app.include_router(api_router, prefix="/api/v1")
