"""Shared processing helpers: LLM client and model-output parsing."""

from stockpulse.processing.common.json_output import strip_code_fences
from stockpulse.processing.common.llm import Completion, LLMClient, compute_cost, create_model

__all__ = [
    "Completion",
    "LLMClient",
    "compute_cost",
    "create_model",
    "strip_code_fences",
]
