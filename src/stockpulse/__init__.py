"""StockPulse: daily stock news aggregation and AI summarization."""

__version__ = "0.1.0"
