"""Multimodal search: fuse transcript matches with visual-frame matches.

The transcript path delegates to the vector-search collaborator.  The visual
path embeds the query and scans stored frame embeddings with cosine
similarity.  Both run concurrently; results are weighted per modality,
merged and ranked by ``final_score``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import fields
from typing import Any

from agentic_rag.retrieval.embeddings import generate_embedding
from agentic_rag.retrieval.models import (
    CombinedResult,
    CombinedTranscriptResult,
    CombinedVisualResult,
    MultimodalSearchOptions,
    MultimodalSearchResult,
    SearchMetadata,
    TranscriptResult,
    VisualFrameResult,
)
from agentic_rag.retrieval.search import search_transcripts
from agentic_rag.retrieval.similarity import cosine_similarity
from agentic_rag.retrieval_config import RetrievalConfig
from agentic_rag.storage import fetch_video_frames

logger = logging.getLogger(__name__)

VISUAL_SIMILARITY_THRESHOLD = 0.70


def _decode_embedding(value: Any) -> list[float] | None:
    """Frame embeddings arrive as a list or as pgvector text (``"[0.1,0.2]"``)."""
    if value is None:
        return None
    if isinstance(value, str):
        value = json.loads(value)
    return [float(v) for v in value]


def _recording_title(row: dict[str, Any]) -> str | None:
    recording = row.get("recordings")
    if isinstance(recording, list):
        recording = recording[0] if recording else None
    if isinstance(recording, dict):
        return recording.get("title")
    return None


def _to_visual_result(row: dict[str, Any], similarity: float) -> VisualFrameResult:
    return VisualFrameResult(
        frame_id=str(row["id"]),
        recording_id=str(row["recording_id"]),
        recording_title=_recording_title(row),
        frame_time_sec=float(row.get("frame_time_sec") or 0.0),
        frame_url=row.get("frame_url") or "",
        visual_description=row.get("visual_description") or "",
        similarity=similarity,
        ocr_text=row.get("ocr_text") or None,
    )


def visual_search(
    query: str,
    org_id: str,
    recording_ids: list[str] | None = None,
    threshold: float = VISUAL_SIMILARITY_THRESHOLD,
) -> list[VisualFrameResult]:
    """Score stored frames against the query embedding.

    Frames below ``threshold`` are dropped; the rest are returned sorted by
    similarity, highest first.  Frames whose embedding is missing or
    unusable are skipped; other errors are not caught here.
    """
    query_embedding = generate_embedding(query)
    rows = fetch_video_frames(org_id, recording_ids)

    scored: list[tuple[float, dict[str, Any]]] = []
    for row in rows:
        try:
            embedding = _decode_embedding(row.get("visual_embedding"))
        except (ValueError, TypeError) as exc:
            logger.debug("Skipping frame %s: unreadable embedding (%s)", row.get("id"), exc)
            continue
        if embedding is None or len(embedding) != len(query_embedding):
            logger.debug("Skipping frame %s: missing or mismatched embedding", row.get("id"))
            continue
        similarity = cosine_similarity(query_embedding, embedding)
        if similarity >= threshold:
            scored.append((similarity, row))

    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [_to_visual_result(row, similarity) for similarity, row in scored]


async def _visual_search_or_empty(
    query: str, options: MultimodalSearchOptions
) -> list[VisualFrameResult]:
    try:
        return await asyncio.to_thread(
            visual_search, query, options.org_id, options.recording_ids
        )
    except Exception:
        logger.exception(
            "Visual search failed for org %s; continuing with transcripts only", options.org_id
        )
        return []


async def _no_visual_results() -> list[VisualFrameResult]:
    return []


def _field_values(result: Any, base: type) -> dict[str, Any]:
    return {f.name: getattr(result, f.name) for f in fields(base)}


def fuse_results(
    transcript_results: list[TranscriptResult],
    visual_results: list[VisualFrameResult],
    audio_weight: float,
    visual_weight: float,
    limit: int | None = None,
) -> list[CombinedResult]:
    """Weight each modality, merge, and rank by ``final_score``.

    The sort is stable, so ties keep transcript-before-visual order and each
    modality's own order.
    """
    combined: list[CombinedResult] = [
        CombinedTranscriptResult(
            **_field_values(r, TranscriptResult), final_score=r.similarity * audio_weight
        )
        for r in transcript_results
    ]
    combined.extend(
        CombinedVisualResult(
            **_field_values(r, VisualFrameResult), final_score=r.similarity * visual_weight
        )
        for r in visual_results
    )
    combined.sort(key=lambda r: r.final_score, reverse=True)
    if limit is not None:
        combined = combined[: max(limit, 0)]
    return combined


async def multimodal_search(
    query: str,
    options: MultimodalSearchOptions,
    config: RetrievalConfig | None = None,
) -> MultimodalSearchResult:
    """Search transcripts and video frames, returning one fused ranking.

    Args:
        query: Natural-language search query.
        options: Tenant scope, recording filter, modality weights and limit.
        config: Retrieval settings; built from the environment when omitted.

    Returns:
        Per-modality results (never truncated), the fused ``combined_results``
        (truncated to ``options.limit``) and metadata echoing the weights used.

    Raises:
        Any error from the transcript vector search.  Visual-path failures are
        logged and yield no visual results instead.
    """
    config = config or RetrievalConfig.from_settings()
    include_visual = options.include_frames and config.enable_visual_search

    transcript_task = asyncio.to_thread(
        search_transcripts,
        query,
        org_id=options.org_id,
        recording_ids=options.recording_ids,
    )
    visual_task = (
        _visual_search_or_empty(query, options) if include_visual else _no_visual_results()
    )
    transcript_results, visual_results = await asyncio.gather(transcript_task, visual_task)

    combined = fuse_results(
        transcript_results,
        visual_results,
        options.audio_weight,
        options.visual_weight,
        options.limit,
    )
    logger.info(
        "Multimodal search: %d transcript, %d visual, %d combined",
        len(transcript_results),
        len(visual_results),
        len(combined),
    )

    return MultimodalSearchResult(
        transcript_results=transcript_results,
        visual_results=visual_results,
        combined_results=combined,
        metadata=SearchMetadata(
            transcript_count=len(transcript_results),
            visual_count=len(visual_results),
            combined_count=len(combined),
            audio_weight=options.audio_weight,
            visual_weight=options.visual_weight,
        ),
    )
