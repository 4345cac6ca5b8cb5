"""Per-market high-potential selection."""

from stockpulse.processing.selection.models import SelectionPayload
from stockpulse.processing.selection.selector import (
    HighPotentialSelector,
    filter_selection,
    parse_selection,
)

__all__ = [
    "HighPotentialSelector",
    "SelectionPayload",
    "filter_selection",
    "parse_selection",
]
