"""Claude text generation and lenient JSON extraction from model output."""

from __future__ import annotations

import json
import re
from typing import Any

from anthropic import Anthropic
from anthropic.types import TextBlock

from agentic_rag.config import settings

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z]*\s*\n?|\n?\s*```\s*$")


def generate_text(prompt: str, system: str | None = None, max_tokens: int = 1024) -> str:
    """Send a single-turn prompt to Claude and return the raw text reply.

    API errors (network, auth, overload) are not caught.
    """
    client = Anthropic(api_key=settings.anthropic_api_key)
    kwargs: dict[str, Any] = {}
    if system:
        kwargs["system"] = system
    response = client.messages.create(
        model=settings.llm_model,
        max_tokens=max_tokens,
        messages=[{"role": "user", "content": prompt}],
        **kwargs,
    )

    # We always request plain text so the first block should be TextBlock.
    block = response.content[0] if response.content else None
    if not isinstance(block, TextBlock):
        raise ValueError(f"Expected TextBlock from Claude, got {type(block).__name__}")
    return block.text


def strip_code_fences(raw: str) -> str:
    """Remove a leading ```lang marker and trailing ``` from model output."""
    return _FENCE_RE.sub("", raw.strip()).strip()


def parse_llm_json(raw: str, allow_embedded: bool = False) -> Any:
    """Parse JSON from an LLM reply.

    Code fences are stripped first.  With ``allow_embedded`` the substring
    between the first ``{`` and the last ``}`` is tried when the whole text
    is not valid JSON (for replies with preamble or trailing prose).

    Raises:
        json.JSONDecodeError: if no JSON could be recovered.
    """
    text = strip_code_fences(raw)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        if not allow_embedded:
            raise
        start = text.find("{")
        end = text.rfind("}") + 1
        if start < 0 or end <= start:
            raise
        return json.loads(text[start:end])
