"""Stock list and detail endpoints."""

from fastapi import APIRouter, HTTPException, Query

from stockpulse.core.dependencies import DbDep
from stockpulse.models import Market, StockRow, Summary
from stockpulse.pipeline import utc_today

router = APIRouter()


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class StockWithSummary(StockRow):
    latest_summary: Summary | None = None


class StockDetail(StockWithSummary):
    news_count: int = 0


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("", response_model=list[StockWithSummary])
async def list_stocks(
    db: DbDep,
    market: Market | None = Query(default=None),
) -> list[StockWithSummary]:
    """Tracked and high-potential stocks with today's summary, high potential first."""
    stocks = await db.get_listed_stocks(market)
    summaries = await db.get_summaries_for_date(utc_today())
    return [
        StockWithSummary(**stock.model_dump(), latest_summary=summaries.get(stock.code))
        for stock in stocks
    ]


@router.get("/{code}", response_model=StockDetail)
async def get_stock(code: str, db: DbDep) -> StockDetail:
    stock = await db.get_stock(code)
    if stock is None:
        raise HTTPException(status_code=404, detail="Stock not found")
    return StockDetail(
        **stock.model_dump(),
        latest_summary=await db.get_latest_summary(code),
        news_count=await db.count_news(code),
    )
