"""News feed endpoints."""

import math

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from stockpulse.core.constants import DEFAULT_NEWS_PAGE_SIZE, MAX_NEWS_PAGE_SIZE
from stockpulse.core.dependencies import DbDep
from stockpulse.models import NewsRecord

router = APIRouter()


class NewsPage(BaseModel):
    articles: list[NewsRecord]
    total: int
    page: int
    total_pages: int = Field(serialization_alias="totalPages")


@router.get("", response_model=NewsPage)
async def list_news(
    db: DbDep,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_NEWS_PAGE_SIZE, ge=1, le=MAX_NEWS_PAGE_SIZE),
    stock_code: str | None = Query(default=None, description="Only news of this stock"),
) -> NewsPage:
    articles, total = await db.list_news(
        limit=limit, offset=(page - 1) * limit, stock_code=stock_code
    )
    return NewsPage(
        articles=articles,
        total=total,
        page=page,
        total_pages=math.ceil(total / limit),
    )
