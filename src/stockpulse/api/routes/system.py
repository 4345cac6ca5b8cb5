"""System status and config endpoints."""

from datetime import date

from fastapi import APIRouter, Query

from stockpulse.core.dependencies import DbDep, SettingsDep
from stockpulse.pipeline import utc_today

router = APIRouter()


@router.get("/usage")
async def usage_totals(
    db: DbDep,
    settings: SettingsDep,
    day: date | None = Query(default=None, alias="date"),
) -> dict[str, object]:
    """Logged model spend for a UTC day against the (unenforced) ceiling."""
    day = day or utc_today()
    tokens, cost = await db.get_usage_totals(day)
    return {
        "date": day.isoformat(),
        "tokens_used": tokens,
        "cost_usd": round(cost, 6),
        "daily_cost_limit_usd": settings.daily_cost_limit_usd,
        "limit_exceeded": cost > settings.daily_cost_limit_usd,
    }


@router.get("/config")
async def system_config(settings: SettingsDep) -> dict[str, object]:
    return {
        "env": settings.env,
        "llm_provider": settings.llm_provider,
        "summary_model": settings.summary_model,
        "analysis_model": settings.analysis_model,
        "scheduler_enabled": settings.scheduler_enabled,
        "cron_secret_configured": settings.cron_secret is not None,
    }
