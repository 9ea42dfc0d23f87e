"""Query decomposition and execution planning for agentic retrieval.

``decompose_query`` turns a user question into sub-queries with optional
dependency links; ``plan_execution_order`` layers those sub-queries into
batches that can each be executed concurrently.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any

from agentic_rag.retrieval.llm import generate_text, parse_llm_json
from agentic_rag.retrieval.models import (
    DEFAULT_PRIORITY,
    IntentClassification,
    QueryDecomposition,
    SubQuery,
)
from agentic_rag.retrieval.query_intent import classify_query_intent
from agentic_rag.retrieval_config import QueryIntent, RetrievalConfig

logger = logging.getLogger(__name__)

DECOMPOSE_PROMPT = """\
Break this search query into the smallest set of independent sub-queries
needed to answer it from meeting transcripts and recorded video.

Query: {query}
Detected intent: {intent}
Complexity (1-5): {complexity}

Rules:
- Each sub-query must be answerable on its own with one search.
- Give each sub-query a short id: "q1", "q2", ...
- If a sub-query needs another's answer first, set "dependency" to that id;
  otherwise set it to null.
- "intent" is one of: single_fact, comparison, multi_part, how_to, exploration.
- "priority" is 1 (low) to 5 (high).

Respond with only a JSON object:
{{
  "reasoning": "why the query was split this way",
  "subQueries": [
    {{"id": "q1", "text": "...", "intent": "single_fact", "dependency": null, "priority": 5}}
  ]
}}"""


def decompose_query(query: str, config: RetrievalConfig | None = None) -> QueryDecomposition:
    """Decompose a user query into sub-queries.

    Simple queries (complexity <= 1, or a single fact of complexity 2) are
    wrapped as a single sub-query without calling the generative model.
    Malformed or non-text model output falls back to the same single-query
    shape with a ``"Fallback: "`` reasoning.  Errors from the model API
    itself propagate to the caller.

    Args:
        query: The user's natural-language question.
        config: Retrieval settings; built from the environment when omitted.

    Returns:
        A QueryDecomposition whose ``sub_queries`` is never empty.
    """
    config = config or RetrievalConfig.from_settings()
    classification = classify_query_intent(query)

    if _is_simple(classification):
        logger.debug(
            "Simple %s query (complexity %d); skipping decomposition",
            classification.intent,
            classification.complexity,
        )
        return _single_query_plan(
            query,
            classification.intent,
            classification.complexity,
            f"Simple query, no decomposition needed: {classification.reasoning}",
        )

    prompt = DECOMPOSE_PROMPT.format(
        query=query,
        intent=classification.intent.value,
        complexity=classification.complexity,
    )
    try:
        raw = generate_text(prompt, max_tokens=1024)
        data = parse_llm_json(raw)
        reasoning, sub_queries = _parse_decomposition(data)
    except (json.JSONDecodeError, ValueError, TypeError) as exc:
        logger.warning("Decomposition output unusable (%s); using single query", exc)
        return _single_query_plan(
            query,
            classification.intent,
            classification.complexity,
            f"Fallback: could not parse decomposition ({exc}); searching the original query",
        )

    if config.max_subqueries is not None and len(sub_queries) > config.max_subqueries:
        logger.info(
            "Capping %d sub-queries to %d", len(sub_queries), config.max_subqueries
        )
        sub_queries = sub_queries[: max(config.max_subqueries, 1)]

    return QueryDecomposition(
        original_query=query,
        sub_queries=sub_queries,
        intent=classification.intent,
        complexity=classification.complexity,
        reasoning=reasoning,
    )


def _is_simple(classification: IntentClassification) -> bool:
    if classification.complexity <= 1:
        return True
    return classification.intent is QueryIntent.SINGLE_FACT and classification.complexity <= 2


def _single_query_plan(
    query: str, intent: QueryIntent, complexity: int, reasoning: str
) -> QueryDecomposition:
    return QueryDecomposition(
        original_query=query,
        sub_queries=[SubQuery(id="q1", text=query, intent=intent, dependency=None)],
        intent=intent,
        complexity=complexity,
        reasoning=reasoning,
    )


def _parse_decomposition(data: Any) -> tuple[str, list[SubQuery]]:
    """Validate model JSON and sanitise each sub-query entry."""
    if not isinstance(data, dict):
        raise TypeError(f"Expected JSON object, got {type(data).__name__}")
    raw_items = data.get("subQueries")
    if not isinstance(raw_items, list):
        raise ValueError("'subQueries' is missing or not a list")

    sub_queries: list[SubQuery] = []
    seen: set[str] = set()
    for position, item in enumerate(raw_items, 1):
        if not isinstance(item, dict):
            continue
        text = str(item.get("text") or "").strip()
        if not text:
            continue
        sub_id = str(item.get("id") or "").strip() or f"q{position}"
        if sub_id in seen:
            sub_id = _next_free_id(seen)
        seen.add(sub_id)
        sub_queries.append(
            SubQuery(
                id=sub_id,
                text=text,
                intent=_coerce_intent(item.get("intent")),
                dependency=_coerce_dependency(item.get("dependency")),
                priority=_coerce_priority(item.get("priority")),
            )
        )

    if not sub_queries:
        raise ValueError("no usable sub-queries")
    return str(data.get("reasoning") or ""), sub_queries


def _next_free_id(taken: set[str]) -> str:
    n = 1
    while f"q{n}" in taken:
        n += 1
    return f"q{n}"


def _coerce_intent(value: Any) -> QueryIntent:
    try:
        return QueryIntent(value)
    except ValueError:
        return QueryIntent.SINGLE_FACT


def _coerce_dependency(value: Any) -> str | None:
    if isinstance(value, str):
        return value or None
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return None


def _coerce_priority(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return DEFAULT_PRIORITY
    if not math.isfinite(value):
        return DEFAULT_PRIORITY
    return min(5, max(1, int(value)))


def plan_execution_order(sub_queries: list[SubQuery]) -> list[list[SubQuery]]:
    """Group sub-queries into batches that respect their dependencies.

    Each batch holds every sub-query whose dependency is absent, dangling
    (not among ``sub_queries``) or already placed in an earlier batch.  If no
    sub-query is eligible while some remain, a cycle exists and all
    remaining sub-queries form one final batch.  Priority is ignored.
    """
    known_ids = {sq.id for sq in sub_queries}
    placed: set[str] = set()
    remaining = list(range(len(sub_queries)))
    batches: list[list[SubQuery]] = []

    while remaining:
        ready = [
            i
            for i in remaining
            if sub_queries[i].dependency is None
            or sub_queries[i].dependency not in known_ids
            or sub_queries[i].dependency in placed
        ]
        if not ready:
            logger.warning(
                "Circular dependency among %s; running them together",
                [sub_queries[i].id for i in remaining],
            )
            batches.append([sub_queries[i] for i in remaining])
            break

        batches.append([sub_queries[i] for i in ready])
        placed.update(sub_queries[i].id for i in ready)
        ready_set = set(ready)
        remaining = [i for i in remaining if i not in ready_set]

    return batches
