"""Batch English to Korean translation of news titles and descriptions.

A batch is translated all-or-nothing: a reply that is not a JSON array of
exactly the input length yields ``None`` and callers keep every item in the
source language. A shifted array would attach one article's translation to
another article's URL.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import orjson
from pydantic import BaseModel, ValidationError

from stockpulse.core.constants import TRANSLATION_TEMPERATURE
from stockpulse.core.exceptions import LLMError
from stockpulse.core.logging import get_logger
from stockpulse.processing.common.json_output import strip_code_fences
from stockpulse.processing.usage import STAGE_TRANSLATION

if TYPE_CHECKING:
    from stockpulse.config import Settings
    from stockpulse.processing.common.llm import LLMClient
    from stockpulse.processing.usage import UsageLogger

logger = get_logger(__name__)

# (title, description)
TextPair = tuple[str, str | None]

TRANSLATION_SYSTEM_PROMPT = """You are a professional translator. \
Translate the following news titles and descriptions from English to Korean.
Return ONLY a JSON array in the same order:
[{"title": "한국어 제목", "description": "한국어 설명"}]
Keep company names, stock tickers, and proper nouns as-is. \
Translate naturally for Korean readers."""


class TranslatedItem(BaseModel):
    """One element of the translation reply."""

    title: str | None = None
    description: str | None = None


def build_translation_input(items: list[TextPair]) -> str:
    """Serialize a batch with positional ids."""
    payload = [
        {"id": i, "title": title, "description": description or ""}
        for i, (title, description) in enumerate(items)
    ]
    return orjson.dumps(payload).decode("utf-8")


def parse_translation(text: str, items: list[TextPair]) -> list[TextPair] | None:
    """Parse a translation reply against its source batch.

    Returns:
        One pair per source item in source order, or None when the reply is
        unusable as a whole. Empty fields fall back to the source value.
    """
    try:
        data: Any = orjson.loads(strip_code_fences(text))
    except orjson.JSONDecodeError:
        return None
    if not isinstance(data, list) or len(data) != len(items):
        return None

    translated: list[TextPair] = []
    for raw, (title, description) in zip(data, items, strict=True):
        try:
            item = TranslatedItem.model_validate(raw)
        except ValidationError:
            item = TranslatedItem()
        translated.append((item.title or title, item.description or description))
    return translated


class NewsTranslator:
    """Translates foreign-market news into Korean before storage."""

    def __init__(
        self,
        llm: LLMClient,
        settings: Settings,
        usage: UsageLogger | None = None,
    ) -> None:
        self._llm = llm
        self._settings = settings
        self._usage = usage

    async def translate(self, items: list[TextPair]) -> list[TextPair] | None:
        """Translate a batch of (title, description) pairs.

        Returns:
            Translated pairs in input order, or None when the batch could not
            be translated. Never raises for model errors.
        """
        if not items:
            return []

        model = self._settings.summary_model
        try:
            completion = await self._llm.complete(
                system_prompt=TRANSLATION_SYSTEM_PROMPT,
                user_prompt=build_translation_input(items),
                model=model,
                max_tokens=self._settings.max_tokens_translation,
                temperature=TRANSLATION_TEMPERATURE,
            )
        except LLMError as e:
            logger.warning("Translation failed", items=len(items), error=e.message)
            return None

        if self._usage is not None:
            self._usage.record(completion, STAGE_TRANSLATION)

        translated = parse_translation(completion.text, items)
        if translated is None:
            logger.warning(
                "Translation reply rejected",
                items=len(items),
                reply_preview=completion.text[:200],
            )
            return None

        logger.debug("Batch translated", items=len(items), tokens=completion.total_tokens)
        return translated
