"""Per-stock daily news summaries.

Every tracked stock gets exactly one summary row per day: stocks without
news get a placeholder, and malformed model output falls back to the raw
reply text with neutral sentiment.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import orjson
from pydantic import ValidationError

from stockpulse.core.constants import NO_MODEL, SUMMARY_TEMPERATURE
from stockpulse.core.logging import get_logger
from stockpulse.models import Market, NewsRecord, StepResult, StockRow, Summary
from stockpulse.processing.common.json_output import strip_code_fences
from stockpulse.processing.summary.models import SummaryPayload
from stockpulse.processing.summary.prompts import (
    build_summary_prompt,
    empty_summary_text,
    summary_system_prompt,
)
from stockpulse.processing.usage import STAGE_SUMMARIES

if TYPE_CHECKING:
    from stockpulse.config import Settings
    from stockpulse.processing.common.llm import LLMClient
    from stockpulse.processing.usage import UsageLogger
    from stockpulse.storage.database import Database

logger = get_logger(__name__)


def parse_summary(text: str) -> SummaryPayload:
    """Decode a summary reply, falling back to the raw text as the summary."""
    try:
        data: Any = orjson.loads(strip_code_fences(text))
        payload = SummaryPayload.model_validate(data)
    except (orjson.JSONDecodeError, ValidationError):
        return SummaryPayload(summary=text, key_points=[], sentiment="neutral")
    if payload.summary is None:
        payload.summary = text
    return payload


class NewsSummarizer:
    """Summarizes each stock's recent news with a volume-sensitive model."""

    def __init__(
        self,
        db: Database,
        llm: LLMClient,
        settings: Settings,
        usage: UsageLogger | None = None,
    ) -> None:
        self._db = db
        self._llm = llm
        self._settings = settings
        self._usage = usage

    def choose_model(self, news_count: int) -> str:
        """Use the analysis model on information-dense days."""
        if news_count >= self._settings.smart_model_threshold:
            return self._settings.analysis_model
        return self._settings.summary_model

    async def load_news(self, stock_code: str) -> list[NewsRecord]:
        since = None
        if self._settings.summary_lookback_hours is not None:
            since = datetime.now(timezone.utc) - timedelta(
                hours=self._settings.summary_lookback_hours
            )
        return await self._db.get_recent_news(
            stock_code, self._settings.summary_news_limit, since=since
        )

    async def summarize(self, stock: StockRow, market: Market, day: date) -> Summary:
        """Summarize one stock and upsert the result for ``day``.

        Raises:
            LLMError: The model call failed (nothing is written)
        """
        news = await self.load_news(stock.code)

        if not news:
            summary = Summary(
                stock_code=stock.code,
                date=day,
                summary_text=empty_summary_text(stock.name_ko),
                key_points=[],
                sentiment_overall="neutral",
                model=NO_MODEL,
            )
            await self._db.upsert_summary(summary)
            logger.debug("Placeholder summary written", stock_code=stock.code)
            return summary

        model = self.choose_model(len(news))
        completion = await self._llm.complete(
            system_prompt=summary_system_prompt(market),
            user_prompt=build_summary_prompt(stock.name_ko, stock.code, news),
            model=model,
            max_tokens=self._settings.max_tokens_summary,
            temperature=SUMMARY_TEMPERATURE,
        )
        if self._usage is not None:
            self._usage.record(completion, STAGE_SUMMARIES, market)

        payload = parse_summary(completion.text)
        summary = Summary(
            stock_code=stock.code,
            date=day,
            summary_text=payload.summary or completion.text,
            key_points=payload.key_points,
            sentiment_overall=payload.sentiment,
            model=model,
            token_usage=completion.total_tokens,
            cost_usd=completion.cost_usd,
        )
        await self._db.upsert_summary(summary)

        logger.info(
            "Summary written",
            stock_code=stock.code,
            news=len(news),
            model=model,
            sentiment=summary.sentiment_overall,
            tokens=summary.token_usage,
        )
        return summary

    async def summarize_market(
        self,
        market: Market,
        stocks: list[StockRow],
        day: date,
    ) -> list[StepResult]:
        """Summarize stocks one by one; a failure only affects its own step."""
        results: list[StepResult] = []
        for stock in stocks:
            step = f"summary:{market.value}:{stock.name_ko}"
            try:
                summary = await self.summarize(stock, market, day)
            except Exception as e:
                logger.exception("Summary failed", stock_code=stock.code, error=str(e))
                results.append(StepResult.error(step, str(e)))
                continue
            results.append(
                StepResult.ok(
                    step,
                    {
                        "sentiment": summary.sentiment_overall,
                        "model": summary.model,
                        "tokens": summary.token_usage,
                        "cost": f"${summary.cost_usd:.6f}",
                    },
                )
            )
        return results
