"""Daily market analysis endpoints."""

from datetime import date

from fastapi import APIRouter, HTTPException, Query

from stockpulse.core.dependencies import DbDep
from stockpulse.models import Market, MarketAnalysis
from stockpulse.pipeline import utc_today

router = APIRouter()


@router.get("/{market}", response_model=MarketAnalysis)
async def get_market_analysis(
    market: Market,
    db: DbDep,
    day: date | None = Query(default=None, alias="date"),
) -> MarketAnalysis:
    analysis = await db.get_market_analysis(market, day or utc_today())
    if analysis is None:
        raise HTTPException(status_code=404, detail="No analysis for this date")
    return analysis
