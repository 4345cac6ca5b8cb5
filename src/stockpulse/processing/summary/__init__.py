"""Per-stock daily summaries."""

from stockpulse.processing.summary.models import SummaryPayload
from stockpulse.processing.summary.summarizer import NewsSummarizer, parse_summary

__all__ = ["NewsSummarizer", "SummaryPayload", "parse_summary"]
