"""Helpers for JSON replies from chat models."""

import re

_FENCE_RE = re.compile(r"^\s*```(?:json|JSON)?\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence, if any.

    Models often wrap JSON in ```json ... ``` even when told not to.
    """
    match = _FENCE_RE.match(text)
    if match:
        return match.group(1).strip()
    return text.strip()
