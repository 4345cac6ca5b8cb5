"""News fetch stage: Google News search feeds into the news table.

Per instrument:
- KOSPI: Korean feed (first 5 items) and English feed (first 3 items, stored untranslated)
- NASDAQ: English feed (first 5 items), translated to Korean before storage

A failure for one (instrument, language) is reported as a step error and
never stops the other feeds.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import timezone
from typing import TYPE_CHECKING

from stockpulse.core.constants import (
    KEYWORDS_PER_LANGUAGE,
    KOSPI_EN_ITEMS_PER_FEED,
    KOSPI_KO_ITEMS_PER_FEED,
    MAX_DESCRIPTION_LENGTH,
    NASDAQ_EN_ITEMS_PER_FEED,
    SOURCE_GOOGLE_NEWS_EN,
    SOURCE_GOOGLE_NEWS_KR,
)
from stockpulse.core.logging import get_logger
from stockpulse.models import Language, Market, NewsCandidate, StepResult

if TYPE_CHECKING:
    from stockpulse.catalog import Instrument
    from stockpulse.ingestion.google_news import FeedItem, GoogleNewsClient
    from stockpulse.processing.news.translator import NewsTranslator
    from stockpulse.storage.database import Database

logger = get_logger(__name__)

FETCH_STEP = "fetch_news"


@dataclass(frozen=True)
class FeedPlan:
    """One feed to query for an instrument."""

    language: Language
    max_items: int
    source: str
    translate: bool = False


FEED_PLANS: dict[Market, tuple[FeedPlan, ...]] = {
    Market.KOSPI: (
        FeedPlan("ko", KOSPI_KO_ITEMS_PER_FEED, SOURCE_GOOGLE_NEWS_KR),
        FeedPlan("en", KOSPI_EN_ITEMS_PER_FEED, SOURCE_GOOGLE_NEWS_EN),
    ),
    Market.NASDAQ: (
        FeedPlan("en", NASDAQ_EN_ITEMS_PER_FEED, SOURCE_GOOGLE_NEWS_EN, translate=True),
    ),
}


def truncate_description(text: str | None) -> str | None:
    if not text:
        return None
    return text[:MAX_DESCRIPTION_LENGTH]


def build_candidates(
    instrument: Instrument,
    items: list[FeedItem],
    plan: FeedPlan,
) -> list[NewsCandidate]:
    """Cap feed items, then drop the ones without a title or link."""
    return [
        NewsCandidate(
            stock_code=instrument.code,
            title=item.title,
            description=truncate_description(item.description),
            url=item.link,
            source=plan.source,
            language=plan.language,
            published_at=item.published_at.astimezone(timezone.utc),
        )
        for item in items[: plan.max_items]
        if item.is_complete
    ]


@dataclass
class FetchStats:
    inserted: int = 0
    skipped: int = 0
    results: list[StepResult] = field(default_factory=list)

    def summary(self) -> StepResult:
        return StepResult.ok(FETCH_STEP, {"inserted": self.inserted, "skipped": self.skipped})


class NewsFetcher:
    """Fetches, optionally translates, and stores news for catalog instruments."""

    def __init__(
        self,
        db: Database,
        feeds: GoogleNewsClient,
        translator: NewsTranslator,
    ) -> None:
        self._db = db
        self._feeds = feeds
        self._translator = translator

    async def fetch_all(self, instruments: Iterable[Instrument]) -> FetchStats:
        """Fetch every feed of every instrument, sequentially in catalog order.

        Returns:
            Insert/skip counts plus one error step per failed feed
        """
        stats = FetchStats()
        for instrument in instruments:
            for plan in FEED_PLANS[instrument.market]:
                for keyword in instrument.keywords(plan.language)[:KEYWORDS_PER_LANGUAGE]:
                    try:
                        await self._fetch_feed(instrument, keyword, plan, stats)
                    except Exception as e:
                        logger.exception(
                            "Feed processing failed",
                            stock_code=instrument.code,
                            language=plan.language,
                            error=str(e),
                        )
                        stats.results.append(
                            StepResult.error(f"fetch:{instrument.name_ko}:{plan.language}", str(e))
                        )

        logger.info("News fetch complete", inserted=stats.inserted, skipped=stats.skipped)
        stats.results.append(stats.summary())
        return stats

    async def _fetch_feed(
        self,
        instrument: Instrument,
        keyword: str,
        plan: FeedPlan,
        stats: FetchStats,
    ) -> None:
        items = await self._feeds.fetch(keyword, plan.language)
        candidates = build_candidates(instrument, items, plan)
        if plan.translate:
            candidates = await self._translate(candidates)

        for candidate in candidates:
            if await self._db.insert_news(candidate):
                stats.inserted += 1
            else:
                stats.skipped += 1

        logger.debug(
            "Feed stored",
            stock_code=instrument.code,
            keyword=keyword,
            language=plan.language,
            items=len(items),
            candidates=len(candidates),
        )

    async def _translate(self, candidates: list[NewsCandidate]) -> list[NewsCandidate]:
        """Substitute Korean text for the whole batch, or keep it all in English."""
        if not candidates:
            return candidates
        translated = await self._translator.translate(
            [(c.title, c.description) for c in candidates]
        )
        if translated is None:
            return candidates
        return [
            c.model_copy(
                update={
                    "title": title,
                    "description": truncate_description(description),
                    "language": "ko",
                }
            )
            for c, (title, description) in zip(candidates, translated, strict=True)
        ]
