"""Custom exceptions for StockPulse."""


class StockPulseError(Exception):
    """Base exception for all StockPulse errors."""

    def __init__(self, message: str, *args: object) -> None:
        self.message = message
        super().__init__(message, *args)


class ConfigurationError(StockPulseError):
    """Required configuration is missing or invalid."""


# Ingestion errors
class IngestionError(StockPulseError):
    """Base error for ingestion layer."""


class FeedFetchError(IngestionError):
    """Failed to fetch or parse an RSS feed."""


# Processing errors
class ProcessingError(StockPulseError):
    """Base error for processing layer."""


class LLMError(ProcessingError):
    """LLM API call failed."""


class SelectionError(ProcessingError):
    """High-potential selection could not be applied."""


# Storage errors
class StorageError(StockPulseError):
    """Base error for storage layer."""


class DatabaseConnectionError(StorageError):
    """Failed to connect to database."""
