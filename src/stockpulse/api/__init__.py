"""HTTP API."""

from stockpulse.api.router import api_router

__all__ = ["api_router"]
