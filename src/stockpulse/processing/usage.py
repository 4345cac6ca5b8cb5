"""Model spend accounting.

Completions are accumulated per (model, stage, market) and appended to the
usage log in batches. The daily cost ceiling is only observed: exceeding it
logs a warning and never stops the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING

from stockpulse.core.constants import USAGE_SERVICE_OPENAI
from stockpulse.core.logging import get_logger
from stockpulse.models import Market, UsageLogEntry

if TYPE_CHECKING:
    from stockpulse.processing.common.llm import Completion
    from stockpulse.storage.database import Database

logger = get_logger(__name__)

STAGE_TRANSLATION = "translation"
STAGE_SUMMARIES = "summaries"
STAGE_ANALYSIS = "analysis"


@dataclass
class _Bucket:
    tokens: int = 0
    cost_usd: float = 0.0


def usage_endpoint(model: str, stage: str, market: Market | None = None) -> str:
    """Endpoint label of a usage row, e.g. ``gpt-4o:analysis:KOSPI``."""
    if market is None:
        return f"{model}:{stage}"
    return f"{model}:{stage}:{market.value}"


class UsageLogger:
    """Accumulates completion costs and appends them to ``api_usage_log``."""

    def __init__(
        self,
        db: Database,
        service: str = USAGE_SERVICE_OPENAI,
        daily_cost_limit_usd: float | None = None,
    ) -> None:
        self._db = db
        self._service = service
        self._daily_cost_limit_usd = daily_cost_limit_usd
        self._pending: dict[tuple[str, str, Market | None], _Bucket] = {}
        self.run_tokens = 0
        self.run_cost_usd = 0.0

    def record(self, completion: Completion, stage: str, market: Market | None = None) -> None:
        """Add one completion to the pending totals."""
        bucket = self._pending.setdefault((completion.model, stage, market), _Bucket())
        bucket.tokens += completion.total_tokens
        bucket.cost_usd += completion.cost_usd
        self.run_tokens += completion.total_tokens
        self.run_cost_usd += completion.cost_usd

    def pending_entries(self, market: Market | None = None) -> list[UsageLogEntry]:
        """Pending rows for one market (``None`` selects market-less rows)."""
        return [
            UsageLogEntry(
                service=self._service,
                endpoint=usage_endpoint(model, stage, bucket_market),
                tokens_used=bucket.tokens,
                cost_usd=bucket.cost_usd,
            )
            for (model, stage, bucket_market), bucket in self._pending.items()
            if bucket_market == market
        ]

    async def flush(self, market: Market | None = None) -> list[UsageLogEntry]:
        """Append pending rows of one market and check the daily ceiling.

        Returns:
            The rows written
        """
        entries = self.pending_entries(market)
        if not entries:
            return []

        await self._db.insert_usage_logs(entries)
        for key in [k for k in self._pending if k[2] == market]:
            del self._pending[key]

        logger.info(
            "Usage logged",
            market=market.value if market else None,
            rows=len(entries),
            tokens=sum(e.tokens_used for e in entries),
            cost_usd=round(sum(e.cost_usd for e in entries), 6),
        )
        await self.check_daily_limit()
        return entries

    async def check_daily_limit(self, day: date | None = None) -> bool:
        """Warn when the day's logged spend exceeds the ceiling.

        Rows are stamped with the insert time, so the default is today in UTC
        whatever date the pipeline run covers.

        Returns:
            True if the ceiling is exceeded
        """
        if self._daily_cost_limit_usd is None:
            return False
        day = day or datetime.now(timezone.utc).date()
        tokens, cost = await self._db.get_usage_totals(day)
        if cost > self._daily_cost_limit_usd:
            logger.warning(
                "Daily cost limit exceeded",
                date=day.isoformat(),
                cost_usd=round(cost, 4),
                tokens=tokens,
                limit_usd=self._daily_cost_limit_usd,
            )
            return True
        return False
