"""Google News RSS client for per-instrument news search feeds.

Uses the free Google News search RSS (no API key required).
"""

import html
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

import httpx
import structlog

try:
    import feedparser
except ImportError as e:
    raise ImportError("feedparser is required: pip install feedparser") from e

from stockpulse.core.constants import GOOGLE_NEWS_LOCALES, GOOGLE_NEWS_RSS_URL
from stockpulse.core.exceptions import FeedFetchError

logger = structlog.get_logger(__name__)


def build_feed_url(query: str, language: str) -> str:
    """Build a Google News search feed URL for a keyword and language."""
    try:
        hl, gl, ceid = GOOGLE_NEWS_LOCALES[language]
    except KeyError:
        raise ValueError(f"Unsupported feed language: {language}") from None
    return f"{GOOGLE_NEWS_RSS_URL}?q={quote(query)}&hl={hl}&gl={gl}&ceid={ceid}"


def _parse_rss_timestamp(time_struct: Any) -> datetime:
    """Parse RSS timestamp (struct_time) to an aware UTC datetime."""
    if time_struct is None:
        return datetime.now(timezone.utc)

    # feedparser normalizes pubDate to a UTC time.struct_time
    if hasattr(time_struct, "tm_year"):
        try:
            return datetime(*time_struct[:6], tzinfo=timezone.utc)
        except (ValueError, OverflowError, TypeError):
            return datetime.now(timezone.utc)

    return datetime.now(timezone.utc)


def _clean_html(text: str) -> str:
    """Strip tags and unescape entities from a feed snippet.

    Google News descriptions are an HTML anchor plus the publisher name.
    """
    text = html.unescape(text)
    text = re.sub(r"<br\s*/?>", " ", text, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]+>", " ", text)
    # Entities can be double-encoded inside CDATA
    text = html.unescape(text)
    text = re.sub(r"\s+", " ", text)
    return text.strip()


@dataclass
class FeedItem:
    """One raw item from a news search feed."""

    title: str
    link: str
    description: str
    published_at: datetime

    @property
    def is_complete(self) -> bool:
        """Items without a title or link are not storable."""
        return bool(self.title) and bool(self.link)


@dataclass
class GoogleNewsClient:
    """Fetch Google News search feeds.

    Uses https://news.google.com/rss/search?q={query}&hl=..&gl=..&ceid=..
    """

    timeout: float = 10.0
    user_agent: str = "StockNewsBot/1.0"

    _client: httpx.AsyncClient | None = field(default=None, init=False, repr=False)

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
                follow_redirects=True,
            )
        return self._client

    async def fetch(self, query: str, language: str) -> list[FeedItem]:
        """Fetch and parse the search feed for one keyword.

        Args:
            query: Search keyword
            language: Feed language ("ko" or "en")

        Returns:
            Feed items in feed order

        Raises:
            FeedFetchError: On HTTP error, timeout, or a body that is not a feed
        """
        client = self._get_client()
        url = build_feed_url(query, language)
        log = logger.bind(query=query, language=language)

        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            log.warning("google_news_http_error", status_code=e.response.status_code)
            raise FeedFetchError(
                f"HTTP {e.response.status_code} fetching feed for {query!r}"
            ) from e
        except httpx.RequestError as e:
            log.warning("google_news_request_error", error=str(e))
            raise FeedFetchError(f"Request failed for {query!r}: {e}") from e

        feed = feedparser.parse(response.text)
        if feed.get("bozo") and not feed.entries:
            error = feed.get("bozo_exception")
            log.warning("google_news_parse_error", error=str(error))
            raise FeedFetchError(f"Unparseable feed for {query!r}: {error}")

        items = [self._parse_entry(entry) for entry in feed.entries]
        log.debug("google_news_fetched", count=len(items))
        return items

    def _parse_entry(self, entry: dict[str, Any]) -> FeedItem:
        """Parse RSS entry into FeedItem."""
        return FeedItem(
            title=(entry.get("title") or "").strip(),
            link=(entry.get("link") or "").strip(),
            description=_clean_html(entry.get("summary") or entry.get("description") or ""),
            published_at=_parse_rss_timestamp(entry.get("published_parsed")),
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
