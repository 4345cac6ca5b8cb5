"""In-process job scheduler for the daily update."""

from __future__ import annotations

from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from stockpulse.core.logging import get_logger

if TYPE_CHECKING:
    from stockpulse.pipeline import DailyPipeline

logger = get_logger(__name__)

DAILY_UPDATE_JOB_ID = "daily_update"


def create_scheduler() -> AsyncIOScheduler:
    """Create a new scheduler instance."""
    return AsyncIOScheduler(timezone="UTC")


async def daily_update_job(pipeline: DailyPipeline) -> None:
    """Run the daily pipeline and log its outcome."""
    try:
        report = await pipeline.run()
        if report.success:
            logger.info(
                "Scheduled daily update complete",
                date=report.date.isoformat(),
                errors=len(report.errors),
            )
        else:
            logger.error(
                "Scheduled daily update failed",
                date=report.date.isoformat(),
                steps=[r.step for r in report.critical_errors],
            )
    except Exception:
        logger.exception("Daily update job failed")


def schedule_daily_update(
    scheduler: AsyncIOScheduler,
    pipeline: DailyPipeline,
    crontab: str,
) -> None:
    """Register the daily update on a crontab expression (UTC)."""
    scheduler.add_job(
        daily_update_job,
        CronTrigger.from_crontab(crontab, timezone="UTC"),
        args=[pipeline],
        id=DAILY_UPDATE_JOB_ID,
        max_instances=1,
        misfire_grace_time=None,
        replace_existing=True,
    )
    logger.info("Daily update scheduled", crontab=crontab)
