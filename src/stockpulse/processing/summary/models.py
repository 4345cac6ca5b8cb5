"""Model-output shape for per-stock summaries."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from stockpulse.models import Sentiment

_SENTIMENTS = ("positive", "negative", "neutral")


class SummaryPayload(BaseModel):
    """JSON object requested from the summary model.

    Every field is coerced instead of rejected: a partially valid reply still
    yields a usable summary.
    """

    summary: str | None = None
    key_points: list[str] = Field(default_factory=list)
    sentiment: Sentiment = "neutral"

    @field_validator("summary", mode="before")
    @classmethod
    def coerce_summary(cls, v: Any) -> str | None:
        if isinstance(v, str) and v.strip():
            return v.strip()
        return None

    @field_validator("key_points", mode="before")
    @classmethod
    def coerce_key_points(cls, v: Any) -> list[str]:
        if not isinstance(v, list):
            return []
        return [str(p).strip() for p in v if isinstance(p, (str, int, float)) and str(p).strip()]

    @field_validator("sentiment", mode="before")
    @classmethod
    def coerce_sentiment(cls, v: Any) -> str:
        if isinstance(v, str) and v.strip().lower() in _SENTIMENTS:
            return v.strip().lower()
        return "neutral"
