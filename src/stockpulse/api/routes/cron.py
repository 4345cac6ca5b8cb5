"""Pipeline trigger endpoint for external schedulers (e.g. Vercel / GitHub cron)."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from stockpulse.core.dependencies import CronAuthDep, PipelineDep
from stockpulse.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.api_route("", methods=["GET", "POST"], dependencies=[CronAuthDep])
async def run_daily_update(pipeline: PipelineDep) -> JSONResponse:
    """Run the full pipeline; HTTP 500 when a selection step failed."""
    report = await pipeline.run()
    if not report.success:
        logger.error(
            "Daily update finished with critical errors",
            steps=[r.step for r in report.critical_errors],
        )
    return JSONResponse(
        status_code=200 if report.success else 500,
        content=report.model_dump(mode="json"),
    )
