"""Static instrument catalog."""

from stockpulse.catalog.instruments import (
    ALL_INSTRUMENTS,
    KOSPI_TOP_10,
    NASDAQ_TOP_10,
    Instrument,
    get_instrument,
    get_instruments_by_market,
)

__all__ = [
    "ALL_INSTRUMENTS",
    "KOSPI_TOP_10",
    "NASDAQ_TOP_10",
    "Instrument",
    "get_instrument",
    "get_instruments_by_market",
]
