"""PostgreSQL (Supabase) database connection using raw asyncpg."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable, Mapping
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, cast

import asyncpg
import orjson

from stockpulse.core.exceptions import DatabaseConnectionError
from stockpulse.core.logging import get_logger
from stockpulse.models import (
    Market,
    MarketAnalysis,
    NewsCandidate,
    NewsRecord,
    SelectedStock,
    StockRow,
    Summary,
    UsageLogEntry,
)

if TYPE_CHECKING:
    from stockpulse.catalog import Instrument

logger = get_logger(__name__)


def _json(value: Any) -> str:
    return orjson.dumps(value).decode("utf-8")


def _load_json(value: Any) -> Any:
    """asyncpg hands JSONB back as text unless a codec is registered."""
    if isinstance(value, (str, bytes)):
        return orjson.loads(value)
    return value


def _row_to_news(row: Mapping[str, Any]) -> NewsRecord:
    return NewsRecord.model_validate(dict(row))


def _row_to_stock(row: Mapping[str, Any]) -> StockRow:
    return StockRow.model_validate(dict(row))


def _row_to_summary(row: Mapping[str, Any]) -> Summary:
    data = dict(row)
    data["key_points"] = _load_json(data.get("key_points")) or []
    return Summary.model_validate(data)


def _row_to_analysis(row: Mapping[str, Any]) -> MarketAnalysis:
    data = dict(row)
    data["selected_stocks"] = _load_json(data.get("selected_stocks")) or []
    return MarketAnalysis.model_validate(data)


class Database:
    """Async PostgreSQL database wrapper using asyncpg."""

    def __init__(
        self,
        dsn: str,
        min_size: int = 1,
        max_size: int = 5,
        schema: str = "public",
    ) -> None:
        self._dsn = dsn
        self._min_size = min_size
        self._max_size = max_size
        self._schema = schema
        self._pool: asyncpg.Pool[asyncpg.Record] | None = None

    async def connect(self) -> None:
        """Create connection pool."""
        # Accept SQLAlchemy-style DSNs
        dsn = self._dsn.replace("postgresql+asyncpg://", "postgresql://")
        schema = self._schema

        async def init_connection(conn: asyncpg.Connection[asyncpg.Record]) -> None:
            await conn.execute(f'SET search_path TO "{schema}", public')

        try:
            self._pool = await asyncpg.create_pool(
                dsn,
                min_size=self._min_size,
                max_size=self._max_size,
                init=init_connection,
                # Supabase's transaction pooler does not support prepared statements
                statement_cache_size=0,
            )
        except (OSError, asyncpg.PostgresError) as e:
            raise DatabaseConnectionError(f"Failed to connect to database: {e}") from e
        logger.debug("Database pool created", min_size=self._min_size, max_size=self._max_size)

    async def disconnect(self) -> None:
        """Close connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.debug("Database pool closed")

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection[asyncpg.Record]]:
        """Acquire a connection from the pool."""
        if not self._pool:
            raise RuntimeError("Database not connected. Call connect() first.")
        async with self._pool.acquire() as conn:
            yield conn

    async def execute(self, query: str, *args: Any) -> str:
        """Execute a query and return status."""
        async with self.acquire() as conn:
            result = await conn.execute(query, *args)
            return cast(str, result)

    async def executemany(self, query: str, args: Iterable[tuple[Any, ...]]) -> None:
        """Execute a query once per argument tuple."""
        async with self.acquire() as conn:
            await conn.executemany(query, args)

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        """Fetch multiple rows."""
        async with self.acquire() as conn:
            result = await conn.fetch(query, *args)
            return list(result)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        """Fetch a single row."""
        async with self.acquire() as conn:
            return await conn.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        """Fetch a single value."""
        async with self.acquire() as conn:
            return await conn.fetchval(query, *args)

    async def ping(self) -> bool:
        return bool(await self.fetchval("SELECT 1"))

    # -------------------------------------------------------------------------
    # Stocks
    # -------------------------------------------------------------------------

    async def seed_instruments(self, instruments: Iterable[Instrument]) -> int:
        """Insert or refresh the static catalog in the stocks table.

        Selection flags and prices are left untouched on existing rows.

        Returns:
            Number of instruments written
        """
        rows = [
            (i.code, i.name_ko, i.name_en, i.sector, i.market.value) for i in instruments
        ]
        query = """
            INSERT INTO stocks (code, name_ko, name_en, sector, market, is_top_10)
            VALUES ($1, $2, $3, $4, $5, TRUE)
            ON CONFLICT (code) DO UPDATE SET
                name_ko = EXCLUDED.name_ko,
                name_en = EXCLUDED.name_en,
                sector = EXCLUDED.sector,
                market = EXCLUDED.market,
                updated_at = NOW()
        """
        await self.executemany(query, rows)
        logger.info("Instrument catalog seeded", count=len(rows))
        return len(rows)

    async def get_tracked_stocks(self, market: Market) -> list[StockRow]:
        """Get tracked (top 10) stocks of a market, ordered by code."""
        query = """
            SELECT * FROM stocks
            WHERE is_top_10 = TRUE AND market = $1
            ORDER BY code
        """
        rows = await self.fetch(query, market.value)
        return [_row_to_stock(r) for r in rows]

    async def get_listed_stocks(self, market: Market | None = None) -> list[StockRow]:
        """Get tracked or high-potential stocks, high potential first."""
        query = """
            SELECT * FROM stocks
            WHERE (is_top_10 = TRUE OR is_high_potential = TRUE)
              AND ($1::text IS NULL OR market = $1)
            ORDER BY is_high_potential DESC, code ASC
        """
        rows = await self.fetch(query, market.value if market else None)
        return [_row_to_stock(r) for r in rows]

    async def get_stock(self, code: str) -> StockRow | None:
        row = await self.fetchrow("SELECT * FROM stocks WHERE code = $1", code)
        return _row_to_stock(row) if row else None

    async def clear_high_potential(self, market: Market) -> list[str]:
        """Clear every high-potential flag of a market.

        Returns:
            Codes that were flagged before clearing
        """
        query = """
            UPDATE stocks
            SET is_high_potential = FALSE, potential_score = NULL, updated_at = NOW()
            WHERE is_high_potential = TRUE AND market = $1
            RETURNING code
        """
        rows = await self.fetch(query, market.value)
        cleared = [row["code"] for row in rows]
        logger.debug("High-potential flags cleared", market=market.value, codes=cleared)
        return cleared

    async def set_high_potential(self, code: str, score: int, market: Market) -> bool:
        """Flag one stock as high potential.

        Returns:
            True if a stock of that market was updated
        """
        query = """
            UPDATE stocks
            SET is_high_potential = TRUE, potential_score = $2, updated_at = NOW()
            WHERE code = $1 AND market = $3
        """
        status = await self.execute(query, code, score, market.value)
        return status.endswith(" 1")

    # -------------------------------------------------------------------------
    # News
    # -------------------------------------------------------------------------

    async def insert_news(self, news: NewsCandidate) -> bool:
        """Insert a news article unless its URL is already stored.

        An existing row is never updated.

        Returns:
            True if inserted, False if skipped as a duplicate
        """
        query = """
            INSERT INTO news_articles (
                stock_code, title, description, url, source, language, published_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            ON CONFLICT (url) DO NOTHING
            RETURNING id
        """
        result = await self.fetchval(
            query,
            news.stock_code,
            news.title,
            news.description,
            news.url,
            news.source,
            news.language,
            news.published_at,
        )
        if result is None:
            logger.debug("News already stored", url=news.url)
            return False
        return True

    async def get_recent_news(
        self,
        stock_code: str,
        limit: int,
        since: datetime | None = None,
    ) -> list[NewsRecord]:
        """Most recent news of one stock, newest first."""
        query = """
            SELECT * FROM news_articles
            WHERE stock_code = $1
              AND ($3::timestamptz IS NULL OR published_at >= $3)
            ORDER BY published_at DESC
            LIMIT $2
        """
        rows = await self.fetch(query, stock_code, limit, since)
        return [_row_to_news(r) for r in rows]

    async def get_news_for_stocks(
        self,
        stock_codes: list[str],
        since: datetime | None = None,
    ) -> list[NewsRecord]:
        """All news of the given stocks, newest first."""
        query = """
            SELECT * FROM news_articles
            WHERE stock_code = ANY($1::text[])
              AND ($2::timestamptz IS NULL OR published_at >= $2)
            ORDER BY published_at DESC
        """
        rows = await self.fetch(query, stock_codes, since)
        return [_row_to_news(r) for r in rows]

    async def list_news(
        self,
        limit: int,
        offset: int,
        stock_code: str | None = None,
    ) -> tuple[list[NewsRecord], int]:
        """Page through news, newest first.

        Returns:
            (articles on this page, total matching articles)
        """
        rows = await self.fetch(
            """
            SELECT * FROM news_articles
            WHERE ($3::text IS NULL OR stock_code = $3)
            ORDER BY published_at DESC
            LIMIT $1 OFFSET $2
            """,
            limit,
            offset,
            stock_code,
        )
        total = await self.fetchval(
            "SELECT COUNT(*) FROM news_articles WHERE ($1::text IS NULL OR stock_code = $1)",
            stock_code,
        )
        return [_row_to_news(r) for r in rows], int(total or 0)

    async def count_news(self, stock_code: str) -> int:
        total = await self.fetchval(
            "SELECT COUNT(*) FROM news_articles WHERE stock_code = $1", stock_code
        )
        return int(total or 0)

    # -------------------------------------------------------------------------
    # Summaries
    # -------------------------------------------------------------------------

    async def upsert_summary(self, summary: Summary) -> None:
        """Insert or replace the summary for (stock_code, date)."""
        query = """
            INSERT INTO ai_summaries (
                stock_code, date, summary_text, key_points, sentiment_overall,
                model, token_usage, cost_usd
            )
            VALUES ($1, $2, $3, $4::jsonb, $5, $6, $7, $8)
            ON CONFLICT (stock_code, date) DO UPDATE SET
                summary_text = EXCLUDED.summary_text,
                key_points = EXCLUDED.key_points,
                sentiment_overall = EXCLUDED.sentiment_overall,
                model = EXCLUDED.model,
                token_usage = EXCLUDED.token_usage,
                cost_usd = EXCLUDED.cost_usd,
                created_at = NOW()
        """
        await self.execute(
            query,
            summary.stock_code,
            summary.date,
            summary.summary_text,
            _json(summary.key_points),
            summary.sentiment_overall,
            summary.model,
            summary.token_usage,
            summary.cost_usd,
        )
        logger.debug(
            "Summary upserted",
            stock_code=summary.stock_code,
            date=summary.date.isoformat(),
            model=summary.model,
        )

    async def get_latest_summary(self, stock_code: str) -> Summary | None:
        row = await self.fetchrow(
            "SELECT * FROM ai_summaries WHERE stock_code = $1 ORDER BY date DESC LIMIT 1",
            stock_code,
        )
        return _row_to_summary(row) if row else None

    async def get_summaries_for_date(self, day: date) -> dict[str, Summary]:
        """Summaries written on a day, keyed by stock code."""
        rows = await self.fetch("SELECT * FROM ai_summaries WHERE date = $1", day)
        summaries = [_row_to_summary(r) for r in rows]
        return {s.stock_code: s for s in summaries}

    # -------------------------------------------------------------------------
    # Market analyses
    # -------------------------------------------------------------------------

    async def upsert_market_analysis(self, analysis: MarketAnalysis) -> None:
        """Insert or replace the analysis for (analysis_date, market)."""
        query = """
            INSERT INTO daily_analysis (analysis_date, market, selected_stocks, analysis_summary)
            VALUES ($1, $2, $3::jsonb, $4)
            ON CONFLICT (analysis_date, market) DO UPDATE SET
                selected_stocks = EXCLUDED.selected_stocks,
                analysis_summary = EXCLUDED.analysis_summary,
                created_at = NOW()
        """
        selected = [s.model_dump(mode="json") for s in analysis.selected_stocks]
        await self.execute(
            query,
            analysis.analysis_date,
            analysis.market.value,
            _json(selected),
            analysis.analysis_summary,
        )
        logger.debug(
            "Market analysis upserted",
            market=analysis.market.value,
            date=analysis.analysis_date.isoformat(),
            selected=[s.code for s in analysis.selected_stocks],
        )

    async def get_market_analysis(self, market: Market, day: date) -> MarketAnalysis | None:
        row = await self.fetchrow(
            "SELECT * FROM daily_analysis WHERE market = $1 AND analysis_date = $2",
            market.value,
            day,
        )
        return _row_to_analysis(row) if row else None

    # -------------------------------------------------------------------------
    # Usage log
    # -------------------------------------------------------------------------

    async def insert_usage_logs(self, entries: list[UsageLogEntry]) -> None:
        """Append usage rows. Never updates or deletes."""
        if not entries:
            return
        query = """
            INSERT INTO api_usage_log (service, endpoint, tokens_used, cost_usd)
            VALUES ($1, $2, $3, $4)
        """
        await self.executemany(
            query,
            [(e.service, e.endpoint, e.tokens_used, e.cost_usd) for e in entries],
        )
        logger.debug("Usage log appended", rows=len(entries))

    async def get_usage_totals(self, day: date) -> tuple[int, float]:
        """Total (tokens, cost_usd) logged on a UTC day."""
        row = await self.fetchrow(
            """
            SELECT COALESCE(SUM(tokens_used), 0) AS tokens,
                   COALESCE(SUM(cost_usd), 0) AS cost
            FROM api_usage_log
            WHERE (created_at AT TIME ZONE 'UTC')::date = $1
            """,
            day,
        )
        if row is None:
            return 0, 0.0
        return int(row["tokens"]), float(row["cost"])


# Global database instance (initialized in lifespan)
_db: Database | None = None


def get_database() -> Database:
    """Get the global database instance."""
    if _db is None:
        raise RuntimeError("Database not initialized")
    return _db


async def init_database(dsn: str, schema: str = "public") -> Database:
    """Initialize the global database instance."""
    global _db
    _db = Database(dsn, schema=schema)
    await _db.connect()
    return _db


async def close_database() -> None:
    """Close the global database instance."""
    global _db
    if _db:
        await _db.disconnect()
        _db = None
