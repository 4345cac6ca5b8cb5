"""Domain models for the news ingestion and analysis pipeline.

These models describe:
- Markets and persisted stock rows
- News records (candidates before insert, records after)
- Daily per-stock summaries and per-market analyses
- Usage log entries and pipeline step results
"""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field, computed_field, field_validator


# =============================================================================
# Markets
# =============================================================================


class Market(str, Enum):
    """Trading venue partitioning stocks, news and daily analyses."""

    KOSPI = "KOSPI"  # domestic, Korean-language news
    NASDAQ = "NASDAQ"  # foreign, English news translated before storage


Sentiment = Literal["positive", "negative", "neutral"]
Language = Literal["ko", "en"]


# =============================================================================
# Stocks
# =============================================================================


class StockRow(BaseModel):
    """A stock as persisted in the ``stocks`` table."""

    code: str
    name_ko: str
    name_en: str
    sector: str
    market: Market
    is_top_10: bool = True
    is_high_potential: bool = False
    potential_score: int | None = None
    last_price: float | None = None
    price_change_pct: float | None = None
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


# =============================================================================
# News
# =============================================================================


class NewsCandidate(BaseModel):
    """A news item ready to be inserted (insert-ignore on ``url``)."""

    stock_code: str
    title: str
    description: str | None = None
    url: str
    source: str
    language: Language
    published_at: dt.datetime


class NewsRecord(NewsCandidate):
    """A stored news article."""

    id: UUID
    sentiment: Sentiment | None = None
    created_at: dt.datetime


# =============================================================================
# Summaries and Analyses
# =============================================================================


class Summary(BaseModel):
    """Daily AI summary for one stock, unique on (stock_code, date)."""

    stock_code: str
    date: dt.date
    summary_text: str
    key_points: list[str] = Field(default_factory=list)
    sentiment_overall: Sentiment = "neutral"
    model: str
    token_usage: int = 0
    cost_usd: float = 0.0
    created_at: dt.datetime | None = None


class SelectedStock(BaseModel):
    """One stock picked as high potential by the selector."""

    code: str
    name_ko: str = ""
    score: int = 0
    reason: str = ""
    crowd_psychology: str | None = None
    historical_pattern: str | None = None

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, v: object) -> int:
        if v is None:
            return 0
        score = round(float(v))  # type: ignore[arg-type]
        return max(0, min(100, score))


class MarketAnalysis(BaseModel):
    """Daily market analysis, unique on (analysis_date, market)."""

    analysis_date: dt.date
    market: Market
    selected_stocks: list[SelectedStock] = Field(default_factory=list)
    analysis_summary: str = ""
    created_at: dt.datetime | None = None


# =============================================================================
# Usage Log
# =============================================================================


class UsageLogEntry(BaseModel):
    """Append-only audit row for model spend."""

    service: str
    endpoint: str
    tokens_used: int = 0
    cost_usd: float = 0.0
    created_at: dt.datetime | None = None


# =============================================================================
# Pipeline Results
# =============================================================================


class StepStatus(str, Enum):
    ok = "ok"
    error = "error"
    skipped = "skipped"


class StepResult(BaseModel):
    """One entry in the result list returned to the trigger caller."""

    step: str
    status: StepStatus
    detail: Any = None

    @classmethod
    def ok(cls, step: str, detail: Any = None) -> StepResult:
        return cls(step=step, status=StepStatus.ok, detail=detail)

    @classmethod
    def error(cls, step: str, detail: Any = None) -> StepResult:
        return cls(step=step, status=StepStatus.error, detail=detail)

    @classmethod
    def skipped(cls, step: str, detail: Any = None) -> StepResult:
        return cls(step=step, status=StepStatus.skipped, detail=detail)


SELECTION_STEP_PREFIX = "potential_analysis"


class PipelineReport(BaseModel):
    """Outcome of one full pipeline run."""

    date: dt.date
    results: list[StepResult] = Field(default_factory=list)

    @property
    def errors(self) -> list[StepResult]:
        return [r for r in self.results if r.status == StepStatus.error]

    @property
    def critical_errors(self) -> list[StepResult]:
        """Selection failures, the only errors that fail a run."""
        return [r for r in self.errors if r.step.startswith(SELECTION_STEP_PREFIX)]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        return not self.critical_errors
