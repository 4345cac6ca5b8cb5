"""News ingestion clients."""

from stockpulse.ingestion.google_news import FeedItem, GoogleNewsClient, build_feed_url

__all__ = ["FeedItem", "GoogleNewsClient", "build_feed_url"]
