"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

import secrets
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request

from stockpulse.config import Settings, get_settings
from stockpulse.pipeline import DailyPipeline
from stockpulse.storage.database import Database, get_database

# Type aliases for cleaner dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_db() -> Database:
    """Get database dependency."""
    return get_database()


async def get_pipeline(request: Request) -> DailyPipeline:
    """Get the DailyPipeline from app.state (set during lifespan)."""
    pipeline: DailyPipeline | None = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise HTTPException(status_code=503, detail="Pipeline not available")
    return pipeline


async def require_cron_secret(
    settings: SettingsDep,
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    """Require ``Authorization: Bearer <CRON_SECRET>``.

    Always rejects when no secret is configured.
    """
    if settings.cron_secret is None or authorization is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    expected = f"Bearer {settings.cron_secret.get_secret_value()}"
    if not secrets.compare_digest(authorization.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Unauthorized")


# Annotated dependencies for use in route handlers
DbDep = Annotated[Database, Depends(get_db)]
PipelineDep = Annotated[DailyPipeline, Depends(get_pipeline)]
CronAuthDep = Depends(require_cron_secret)
