"""Retrieval configuration: intent/modality enums and RetrievalConfig dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from agentic_rag.config import Settings, get_settings


class QueryIntent(StrEnum):
    """Closed set of intents a query or sub-query can carry."""

    SINGLE_FACT = "single_fact"
    COMPARISON = "comparison"
    MULTI_PART = "multi_part"
    HOW_TO = "how_to"
    EXPLORATION = "exploration"


class SearchModality(StrEnum):
    """Retrieval channel a combined result came from."""

    TRANSCRIPT = "transcript"
    VISUAL = "visual"


@dataclass(frozen=True)
class RetrievalConfig:
    """Immutable per-call configuration for the retrieval core.

    Passed explicitly into the decomposer and search engines so their
    behaviour does not depend on ambient process state.  Use
    :meth:`from_settings` to build one from the environment.
    """

    enable_visual_search: bool = True
    max_subqueries: int | None = None
    max_iterations: int = 3
    final_result_limit: int = 20

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> RetrievalConfig:
        s = source or get_settings()
        return cls(
            enable_visual_search=s.enable_visual_search,
            max_subqueries=s.max_subqueries,
            max_iterations=s.agentic_max_iterations,
        )
