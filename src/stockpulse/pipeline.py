"""Daily update pipeline shared by every trigger (cron endpoint, CLI, scheduler).

Flow per run, strictly sequential:
1. Fetch news for all catalog instruments (KOSPI then NASDAQ)
2. Per market: summarize each tracked stock, select high-potential stocks,
   append the market's usage rows

Step failures are isolated and reported; only selection failures make the
run unsuccessful.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING

from stockpulse.catalog import ALL_INSTRUMENTS, Instrument
from stockpulse.core.logging import get_logger, pipeline_run_context
from stockpulse.models import Market, PipelineReport, StepResult
from stockpulse.processing.news import NewsFetcher, NewsTranslator
from stockpulse.processing.selection import HighPotentialSelector
from stockpulse.processing.summary import NewsSummarizer
from stockpulse.processing.usage import UsageLogger

if TYPE_CHECKING:
    from stockpulse.config import Settings
    from stockpulse.ingestion.google_news import GoogleNewsClient
    from stockpulse.processing.common.llm import LLMClient
    from stockpulse.storage.database import Database

logger = get_logger(__name__)

MARKETS: tuple[Market, ...] = (Market.KOSPI, Market.NASDAQ)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


class DailyPipeline:
    """Fetch, summarize and select for every market.

    Service handles are created once per process and passed in; each run
    builds its own stages around a fresh usage accumulator.
    """

    def __init__(
        self,
        db: Database,
        llm: LLMClient,
        feeds: GoogleNewsClient,
        settings: Settings,
        instruments: Sequence[Instrument] = ALL_INSTRUMENTS,
    ) -> None:
        self._db = db
        self._llm = llm
        self._feeds = feeds
        self._settings = settings
        self._instruments = instruments

    async def run(self, day: date | None = None) -> PipelineReport:
        """Run the full pipeline once.

        Args:
            day: Date stamped on summaries and analyses (defaults to today, UTC)

        Returns:
            Report with every step result in execution order
        """
        day = day or utc_today()
        with pipeline_run_context(day):
            return await self._run(day)

    async def _run(self, day: date) -> PipelineReport:
        report = PipelineReport(date=day)
        usage = UsageLogger(
            self._db,
            service=self._llm.service,
            daily_cost_limit_usd=self._settings.daily_cost_limit_usd,
        )
        logger.info("Daily pipeline started", instruments=len(self._instruments))

        # Step 1: news
        translator = NewsTranslator(self._llm, self._settings, usage)
        fetcher = NewsFetcher(self._db, self._feeds, translator)
        stats = await fetcher.fetch_all(self._instruments)
        report.results.extend(stats.results)
        report.results.extend(await self._flush_usage(usage, None))

        # Step 2: summaries and selection per market
        summarizer = NewsSummarizer(self._db, self._llm, self._settings, usage)
        selector = HighPotentialSelector(self._db, self._llm, self._settings, usage)
        for market in MARKETS:
            report.results.extend(
                await self._run_market(market, day, summarizer, selector, usage)
            )

        logger.info(
            "Daily pipeline finished",
            success=report.success,
            steps=len(report.results),
            errors=len(report.errors),
            tokens=usage.run_tokens,
            cost_usd=round(usage.run_cost_usd, 6),
        )
        return report

    async def _run_market(
        self,
        market: Market,
        day: date,
        summarizer: NewsSummarizer,
        selector: HighPotentialSelector,
        usage: UsageLogger,
    ) -> list[StepResult]:
        try:
            stocks = await self._db.get_tracked_stocks(market)
        except Exception as e:
            logger.exception("Loading tracked stocks failed", market=market.value)
            return [StepResult.error(f"analysis:{market.value}", str(e))]
        if not stocks:
            logger.warning("No tracked stocks, market skipped", market=market.value)
            return [StepResult.skipped(f"analysis:{market.value}", "No stocks found")]

        results = await summarizer.summarize_market(market, stocks, day)
        results.append(await selector.run(market, stocks, day))
        results.extend(await self._flush_usage(usage, market))
        return results

    async def _flush_usage(
        self, usage: UsageLogger, market: Market | None
    ) -> list[StepResult]:
        """Usage rows are observability only; a failed write is not critical."""
        try:
            await usage.flush(market)
        except Exception as e:
            label = market.value if market else "fetch"
            logger.exception("Usage log write failed", market=label)
            return [StepResult.error(f"usage_log:{label}", str(e))]
        return []
