"""High-potential stock selection per market.

The reply must decode into ``SelectionPayload`` after stripping code fences.
Anything else fails the market's selection step with no flags touched and
no analysis written. On success the market's flags are fully replaced:
every prior flag is cleared before the new selection is applied.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import orjson
from pydantic import ValidationError

from stockpulse.core.constants import ANALYSIS_TEMPERATURE
from stockpulse.core.exceptions import SelectionError
from stockpulse.core.logging import get_logger
from stockpulse.models import (
    SELECTION_STEP_PREFIX,
    Market,
    MarketAnalysis,
    SelectedStock,
    StepResult,
    StockRow,
)
from stockpulse.processing.common.json_output import strip_code_fences
from stockpulse.processing.selection.models import SelectionPayload
from stockpulse.processing.selection.prompts import (
    build_selection_prompt,
    selection_system_prompt,
)
from stockpulse.processing.usage import STAGE_ANALYSIS

if TYPE_CHECKING:
    from stockpulse.config import Settings
    from stockpulse.processing.common.llm import Completion, LLMClient
    from stockpulse.processing.usage import UsageLogger
    from stockpulse.storage.database import Database

logger = get_logger(__name__)


def parse_selection(text: str) -> SelectionPayload:
    """Strictly decode a selection reply.

    Raises:
        SelectionError: The reply is not JSON or does not fit the payload shape
    """
    try:
        data: Any = orjson.loads(strip_code_fences(text))
    except orjson.JSONDecodeError as e:
        raise SelectionError(f"Selection reply is not valid JSON: {e}") from e
    try:
        return SelectionPayload.model_validate(data)
    except ValidationError as e:
        raise SelectionError(f"Selection reply has an unexpected shape: {e}") from e


def filter_selection(
    selected: list[SelectedStock],
    stocks: list[StockRow],
    limit: int,
) -> list[SelectedStock]:
    """Keep the first ``limit`` distinct picks that belong to the market."""
    known = {s.code: s for s in stocks}
    kept: list[SelectedStock] = []
    for pick in selected:
        stock = known.get(pick.code)
        if stock is None:
            logger.warning("Selected code not in market, dropped", code=pick.code)
            continue
        if any(k.code == pick.code for k in kept):
            continue
        if not pick.name_ko:
            pick = pick.model_copy(update={"name_ko": stock.name_ko})
        kept.append(pick)
        if len(kept) >= limit:
            break
    return kept


class HighPotentialSelector:
    """Picks the top stocks of a market and replaces its high-potential flags."""

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

    async def select(
        self,
        market: Market,
        stocks: list[StockRow],
        day: date,
    ) -> tuple[MarketAnalysis, Completion]:
        """Run selection for one market and apply it.

        Raises:
            LLMError: The model call failed
            SelectionError: The reply could not be decoded
        """
        since = None
        if self._settings.selector_lookback_hours is not None:
            since = datetime.now(timezone.utc) - timedelta(
                hours=self._settings.selector_lookback_hours
            )
        news = await self._db.get_news_for_stocks([s.code for s in stocks], since=since)

        count = self._settings.potential_stocks_count
        completion = await self._llm.complete(
            system_prompt=selection_system_prompt(market, count),
            user_prompt=build_selection_prompt(market, stocks, news),
            model=self._settings.analysis_model,
            max_tokens=self._settings.max_tokens_analysis,
            temperature=ANALYSIS_TEMPERATURE,
        )
        if self._usage is not None:
            self._usage.record(completion, STAGE_ANALYSIS, market)

        payload = parse_selection(completion.text)
        selected = filter_selection(payload.selected_stocks, stocks, count)

        await self._db.clear_high_potential(market)
        for pick in selected:
            await self._db.set_high_potential(pick.code, pick.score, market)

        analysis = MarketAnalysis(
            analysis_date=day,
            market=market,
            selected_stocks=selected,
            analysis_summary=payload.analysis_summary,
        )
        await self._db.upsert_market_analysis(analysis)

        logger.info(
            "High-potential selection applied",
            market=market.value,
            news=len(news),
            selected=[p.code for p in selected],
            tokens=completion.total_tokens,
        )
        return analysis, completion

    async def run(self, market: Market, stocks: list[StockRow], day: date) -> StepResult:
        """Selection as a pipeline step. Errors here fail the whole run."""
        step = f"{SELECTION_STEP_PREFIX}:{market.value}"
        try:
            analysis, completion = await self.select(market, stocks, day)
        except Exception as e:
            logger.exception("High-potential selection failed", market=market.value, error=str(e))
            return StepResult.error(step, str(e))
        return StepResult.ok(
            step,
            {
                "selected": [s.model_dump(mode="json") for s in analysis.selected_stocks],
                "summary": analysis.analysis_summary,
                "tokens": completion.total_tokens,
                "cost": f"${completion.cost_usd:.6f}",
            },
        )
