"""Agentic search: decompose a query, plan batches, and fuse results per sub-query."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace

from agentic_rag.retrieval.decomposition import decompose_query, plan_execution_order
from agentic_rag.retrieval.models import (
    AgenticSearchResult,
    CombinedResult,
    IterationResult,
    MultimodalSearchOptions,
    QueryDecomposition,
    SubQuery,
)
from agentic_rag.retrieval.multimodal import multimodal_search
from agentic_rag.retrieval_config import RetrievalConfig, SearchModality

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


async def _run_sub_query(
    sub_query: SubQuery,
    iteration_number: int,
    options: MultimodalSearchOptions,
    config: RetrievalConfig,
) -> IterationResult:
    start = time.perf_counter()
    result = await multimodal_search(sub_query.text, options, config)
    return IterationResult(
        iteration_number=iteration_number,
        sub_query=sub_query,
        results=result.combined_results,
        duration_ms=_elapsed_ms(start),
    )


def merge_final_results(iterations: list[IterationResult], limit: int) -> list[CombinedResult]:
    """Union all iteration results, keeping the best score per chunk/frame."""
    best: dict[tuple[SearchModality, str], CombinedResult] = {}
    for iteration in iterations:
        for result in iteration.results:
            key = (result.modality, result.result_id)
            current = best.get(key)
            if current is None or result.final_score > current.final_score:
                best[key] = result
    ranked = sorted(best.values(), key=lambda r: r.final_score, reverse=True)
    return ranked[:limit]


def build_citation_map(
    iterations: list[IterationResult], final_results: list[CombinedResult]
) -> dict[str, list[str]]:
    """Map each final result id to the sub-queries that surfaced it, in run order."""
    kept = {(r.modality, r.result_id) for r in final_results}
    citations: dict[str, list[str]] = {}
    for iteration in iterations:
        for result in iteration.results:
            if (result.modality, result.result_id) not in kept:
                continue
            cited_by = citations.setdefault(result.result_id, [])
            if iteration.sub_query.id not in cited_by:
                cited_by.append(iteration.sub_query.id)
    return citations


def build_reasoning_path(
    decomposition: QueryDecomposition, iterations: list[IterationResult]
) -> str:
    """Human-readable summary of how the query was answered."""
    lines = [f"Query Analysis: {decomposition.reasoning}", "", "Search Strategy:"]
    for iteration in iterations:
        lines.append(
            f"{iteration.iteration_number}. {iteration.sub_query.text} -> "
            f"{len(iteration.results)} results"
        )
    return "\n".join(lines)


async def agentic_search(
    query: str,
    options: MultimodalSearchOptions,
    config: RetrievalConfig | None = None,
) -> AgenticSearchResult:
    """Answer a query with multi-step retrieval.

    Sub-queries in the same batch are searched concurrently; batches run in
    order, up to ``config.max_iterations`` of them.  The per-call ``limit``
    on ``options`` is ignored for individual sub-queries; the merged result
    set is capped at ``config.final_result_limit``.
    """
    config = config or RetrievalConfig.from_settings()
    start = time.perf_counter()

    decomposition = await asyncio.to_thread(decompose_query, query, config)
    batches = plan_execution_order(decomposition.sub_queries)
    logger.info(
        "Agentic search: intent=%s complexity=%d sub_queries=%d batches=%d",
        decomposition.intent,
        decomposition.complexity,
        len(decomposition.sub_queries),
        len(batches),
    )

    sub_query_options = replace(options, limit=None)
    iterations: list[IterationResult] = []
    executed = batches[: config.max_iterations]
    for batch_number, batch in enumerate(executed, 1):
        batch_results = await asyncio.gather(
            *(_run_sub_query(sq, batch_number, sub_query_options, config) for sq in batch)
        )
        iterations.extend(batch_results)
        logger.debug("Batch %d/%d complete", batch_number, len(executed))

    if len(batches) > len(executed):
        logger.info(
            "Max iterations (%d) reached; skipped %d batch(es)",
            config.max_iterations,
            len(batches) - len(executed),
        )

    final_results = merge_final_results(iterations, config.final_result_limit)

    return AgenticSearchResult(
        query=query,
        decomposition=decomposition,
        batches=[[sq.id for sq in batch] for batch in batches],
        iterations=iterations,
        final_results=final_results,
        reasoning=build_reasoning_path(decomposition, iterations),
        duration_ms=_elapsed_ms(start),
        metadata={
            "batch_count": len(executed),
            "sub_queries_executed": len(iterations),
            "results_retrieved": len(final_results),
        },
        citation_map=build_citation_map(iterations, final_results),
    )
