"""Query intent classification: Claude first, keyword heuristics as fallback."""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any

from agentic_rag.retrieval.llm import generate_text, parse_llm_json
from agentic_rag.retrieval.models import IntentClassification
from agentic_rag.retrieval_config import QueryIntent

logger = logging.getLogger(__name__)

CLASSIFY_PROMPT = """\
Classify the intent and complexity of this search query over recorded
meetings, videos and documents.

Intents:
- single_fact: one direct factual question
- comparison: compares two or more things
- multi_part: several distinct questions in one
- how_to: asks for steps or a procedure
- exploration: open-ended, asks for a broad overview

Complexity is an integer from 1 (trivial, answerable with one lookup) to
5 (needs many separate lookups combined).

Respond with only a JSON object:
{{"intent": "...", "confidence": 0.0-1.0, "complexity": 1-5, "reasoning": "..."}}

Query: {query}"""

_FALLBACK_CONFIDENCE = 0.7
_DEFAULT_CONFIDENCE = 0.5

# (intent, complexity, label, patterns) -- first match wins
_FALLBACK_RULES: list[tuple[QueryIntent, int, str, list[re.Pattern[str]]]] = [
    (
        QueryIntent.COMPARISON,
        4,
        "comparison",
        [
            re.compile(r"\bdifference\s+between\b", re.IGNORECASE),
            re.compile(r"\bcompar(e|ed|ing|ison)\b", re.IGNORECASE),
            re.compile(r"\bvs\.?\s", re.IGNORECASE),
            re.compile(r"\bversus\b", re.IGNORECASE),
            re.compile(r"\bwhich\s+is\s+better\b", re.IGNORECASE),
        ],
    ),
    (
        QueryIntent.HOW_TO,
        3,
        "how-to",
        [
            re.compile(r"\bhow\s+to\b", re.IGNORECASE),
            re.compile(r"\bhow\s+(do|can|should)\s+(i|we|you)\b", re.IGNORECASE),
            re.compile(r"\bsteps?\s+(to|for)\b", re.IGNORECASE),
        ],
    ),
    (
        QueryIntent.MULTI_PART,
        3,
        "multi-part",
        [
            re.compile(r"\s(and|also)\s", re.IGNORECASE),
            re.compile(r"\?.*\?", re.DOTALL),
            re.compile(r"\w+,\s*\w+,"),
        ],
    ),
    (
        QueryIntent.EXPLORATION,
        2,
        "exploration",
        [
            re.compile(r"\btell\s+me\s+about\b", re.IGNORECASE),
            re.compile(r"\bexplain\b", re.IGNORECASE),
            re.compile(r"\bwhat\s+is\b", re.IGNORECASE),
            re.compile(r"\bdescribe\b", re.IGNORECASE),
            re.compile(r"\boverview\b", re.IGNORECASE),
        ],
    ),
]


def classify_query_intent(query: str) -> IntentClassification:
    """Classify a query's intent and complexity using Claude.

    Malformed or non-text model output falls back to
    :func:`fallback_classification`.
    Errors from the Claude API itself propagate.
    """
    try:
        raw = generate_text(CLASSIFY_PROMPT.format(query=query), max_tokens=256)
        data = parse_llm_json(raw, allow_embedded=True)
        return _validate_classification(data)
    except (json.JSONDecodeError, ValueError, TypeError, KeyError) as exc:
        logger.warning("Intent classifier returned unusable output (%s); using heuristics", exc)
        return fallback_classification(query)


def _validate_classification(data: Any) -> IntentClassification:
    if not isinstance(data, dict):
        raise TypeError(f"Expected JSON object, got {type(data).__name__}")

    intent = QueryIntent(data["intent"])
    confidence = min(1.0, max(0.0, float(data.get("confidence", _DEFAULT_CONFIDENCE))))
    raw_complexity = float(data.get("complexity", 1))
    if not math.isfinite(raw_complexity):
        raise ValueError(f"Non-finite complexity: {raw_complexity}")
    complexity = min(5, max(1, int(raw_complexity)))
    return IntentClassification(
        intent=intent,
        confidence=confidence,
        complexity=complexity,
        reasoning=str(data.get("reasoning", "")),
    )


def fallback_classification(query: str) -> IntentClassification:
    """Keyword-based classification used when the model output is unusable."""
    for intent, complexity, label, patterns in _FALLBACK_RULES:
        if any(p.search(query) for p in patterns):
            return IntentClassification(
                intent=intent,
                confidence=_FALLBACK_CONFIDENCE,
                complexity=complexity,
                reasoning=f"Detected {label} keywords",
            )

    return IntentClassification(
        intent=QueryIntent.SINGLE_FACT,
        confidence=_DEFAULT_CONFIDENCE,
        complexity=1,
        reasoning="No decomposition keywords detected; treating as a single fact",
    )
