"""Process-scoped service handles and their lifecycle.

Shared by the HTTP app lifespan and the one-shot CLI run.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from stockpulse.catalog import ALL_INSTRUMENTS
from stockpulse.config import Settings
from stockpulse.core.logging import get_logger
from stockpulse.ingestion.google_news import GoogleNewsClient
from stockpulse.pipeline import DailyPipeline
from stockpulse.processing.common.llm import LLMClient
from stockpulse.scheduler import create_scheduler, schedule_daily_update
from stockpulse.storage.database import Database, close_database, init_database

logger = get_logger(__name__)


@dataclass
class ServiceState:
    """References to all running resources."""

    settings: Settings
    db: Database
    llm: LLMClient
    feeds: GoogleNewsClient
    pipeline: DailyPipeline
    scheduler: AsyncIOScheduler | None = None


@asynccontextmanager
async def service_lifespan(
    settings: Settings,
    enable_scheduler: bool | None = None,
) -> AsyncIterator[ServiceState]:
    """Connect services, seed the catalog, and tear everything down on exit.

    Raises:
        ConfigurationError: Required credentials are missing (before any network call)
        DatabaseConnectionError: The database is unreachable
    """
    dsn = settings.require_credentials()

    if enable_scheduler is None:
        enable_scheduler = settings.scheduler_enabled

    db: Database | None = None
    feeds: GoogleNewsClient | None = None
    scheduler: AsyncIOScheduler | None = None

    try:
        logger.debug("Connecting to PostgreSQL")
        db = await init_database(dsn, schema=settings.database_schema)
        await db.seed_instruments(ALL_INSTRUMENTS)

        llm = LLMClient(settings)
        feeds = GoogleNewsClient(timeout=settings.feed_timeout, user_agent=settings.feed_user_agent)
        pipeline = DailyPipeline(db, llm, feeds, settings)

        if enable_scheduler:
            scheduler = create_scheduler()
            schedule_daily_update(scheduler, pipeline, settings.daily_update_cron)
            scheduler.start()

        yield ServiceState(
            settings=settings,
            db=db,
            llm=llm,
            feeds=feeds,
            pipeline=pipeline,
            scheduler=scheduler,
        )
    finally:
        if scheduler and scheduler.running:
            scheduler.shutdown(wait=False)
            logger.debug("Scheduler stopped")

        if feeds:
            await feeds.close()

        if db:
            await close_database()
            logger.debug("PostgreSQL disconnected")
