"""Model-output shape for high-potential selection."""

from pydantic import BaseModel

from stockpulse.models import SelectedStock


class SelectionPayload(BaseModel):
    """JSON object requested from the selection model.

    Decoded strictly: both keys are required, and a reply that does not fit
    fails the selection step.
    """

    selected_stocks: list[SelectedStock]
    analysis_summary: str
