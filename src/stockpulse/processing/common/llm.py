"""LLM model factory and completion client for PydanticAI.

Supports:
- OpenAI (gpt-4o-mini / gpt-4o) - default
- OpenAI-compatible APIs via openai_base_url
- Anthropic (Claude)

Every completion reports token usage and its USD cost so callers can feed
the usage log.
"""

from collections.abc import Callable
from dataclasses import dataclass

from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.models.anthropic import AnthropicModel
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.anthropic import AnthropicProvider
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.settings import ModelSettings

from stockpulse.config import Settings, get_settings
from stockpulse.core.constants import (
    DEFAULT_PRICING_MODEL,
    MODEL_PRICING_PER_MILLION,
    USAGE_SERVICE_ANTHROPIC,
    USAGE_SERVICE_OPENAI,
)
from stockpulse.core.exceptions import LLMError
from stockpulse.core.logging import get_logger

logger = get_logger(__name__)

ModelFactory = Callable[[str], str | Model]


def create_model(model_name: str, settings: Settings | None = None) -> str | Model:
    """Create a PydanticAI model based on configuration.

    Args:
        model_name: Provider model name (e.g. "gpt-4o-mini")
        settings: Settings to read provider credentials from (defaults to cached settings)

    Returns:
        AnthropicModel or OpenAIChatModel instance for the configured provider.
    """
    settings = settings or get_settings()

    if settings.llm_provider == "anthropic":
        if settings.anthropic_api_key:
            anthropic = AnthropicProvider(api_key=settings.anthropic_api_key.get_secret_value())
            logger.debug("Using Anthropic model", model=model_name)
            return AnthropicModel(model_name, provider=anthropic)
        # Falls back to ANTHROPIC_API_KEY from the environment
        return f"anthropic:{model_name}"

    api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else None

    if settings.openai_base_url:
        provider = OpenAIProvider(
            base_url=settings.openai_base_url,
            api_key=api_key,
        )
        logger.debug(
            "Using OpenAI-compatible model",
            model=model_name,
            base_url=settings.openai_base_url,
        )
    else:
        provider = OpenAIProvider(api_key=api_key)
        logger.debug("Using OpenAI model", model=model_name)

    return OpenAIChatModel(model_name, provider=provider)


def compute_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    """USD cost of one call from the per-million token price table.

    Models missing from the table are priced as the default (cheap) model.
    """
    input_price, output_price = MODEL_PRICING_PER_MILLION.get(
        model, MODEL_PRICING_PER_MILLION[DEFAULT_PRICING_MODEL]
    )
    return (input_tokens * input_price + output_tokens * output_price) / 1_000_000


@dataclass
class Completion:
    """Raw text of a model reply plus its accounting."""

    text: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    cost_usd: float = 0.0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class LLMClient:
    """Plain-text chat completions with token and cost accounting.

    Output is requested as free text; callers own the parsing so each stage
    can decide between tolerant fallback and strict failure.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        model_factory: ModelFactory | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._model_factory: ModelFactory = model_factory or (
            lambda name: create_model(name, self._settings)
        )
        self._agents: dict[tuple[str, str], Agent[None, str]] = {}

    @property
    def service(self) -> str:
        """Usage-log service label of the configured provider."""
        if self._settings.llm_provider == "anthropic":
            return USAGE_SERVICE_ANTHROPIC
        return USAGE_SERVICE_OPENAI

    def _agent(self, model: str, system_prompt: str) -> Agent[None, str]:
        key = (model, system_prompt)
        if key not in self._agents:
            self._agents[key] = Agent(
                self._model_factory(model),
                output_type=str,
                system_prompt=system_prompt,
            )
        return self._agents[key]

    async def complete(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> Completion:
        """Run one completion.

        Raises:
            LLMError: The provider call failed for any reason
        """
        agent = self._agent(model, system_prompt)
        try:
            result = await agent.run(
                user_prompt,
                model_settings=ModelSettings(max_tokens=max_tokens, temperature=temperature),
            )
            usage = result.usage()
            text = result.output
        except Exception as e:
            logger.warning("LLM call failed", model=model, error=str(e))
            raise LLMError(f"{model} call failed: {e}") from e

        input_tokens = usage.input_tokens or 0
        output_tokens = usage.output_tokens or 0
        completion = Completion(
            text=text,
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_usd=compute_cost(model, input_tokens, output_tokens),
        )
        logger.debug(
            "LLM call complete",
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_usd=round(completion.cost_usd, 6),
        )
        return completion
