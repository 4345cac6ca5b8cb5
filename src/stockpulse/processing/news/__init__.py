"""News ingestion stage: feed fetch, translation, and deduplicated storage."""

from stockpulse.processing.news.fetcher import FetchStats, NewsFetcher
from stockpulse.processing.news.translator import NewsTranslator

__all__ = ["FetchStats", "NewsFetcher", "NewsTranslator"]
