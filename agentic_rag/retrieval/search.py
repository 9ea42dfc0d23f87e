"""Transcript vector search over stored recording chunks."""

from __future__ import annotations

from typing import Any, cast

from agentic_rag.retrieval.embeddings import generate_embedding
from agentic_rag.retrieval.models import TranscriptResult
from agentic_rag.storage import get_supabase_client

DEFAULT_MATCH_COUNT = 15
DEFAULT_MATCH_THRESHOLD = 0.7


def _enrich_with_recording_titles(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Add recording_title to each row by fetching recording metadata."""
    missing = list(
        {r["recording_id"] for r in rows if r.get("recording_id") and not r.get("recording_title")}
    )
    if not missing:
        return rows
    client = get_supabase_client()
    result = client.table("recordings").select("id,title").in_("id", missing).execute()
    title_map = {r["id"]: r["title"] for r in cast(list[dict[str, Any]], result.data)}
    for row in rows:
        if not row.get("recording_title"):
            row["recording_title"] = title_map.get(row.get("recording_id", ""))
    return rows


def _to_transcript_result(row: dict[str, Any]) -> TranscriptResult:
    timestamp = row.get("start_time_sec")
    return TranscriptResult(
        chunk_id=str(row["id"]),
        recording_id=str(row["recording_id"]),
        recording_title=row.get("recording_title"),
        text=row.get("chunk_text") or "",
        similarity=float(row["similarity"]),
        timestamp=float(timestamp) if timestamp is not None else None,
    )


def search_transcripts(
    query: str,
    org_id: str,
    recording_ids: list[str] | None = None,
    match_count: int = DEFAULT_MATCH_COUNT,
    threshold: float = DEFAULT_MATCH_THRESHOLD,
) -> list[TranscriptResult]:
    """Vector similarity search over transcript chunks via the match_chunks RPC.

    Results come back ordered by similarity (highest first).  Errors from
    OpenAI or Supabase are not caught.

    Args:
        query: The search query text.
        org_id: Tenant scope.
        recording_ids: Optional subset of recordings to search.
        match_count: Maximum number of chunks to return.
        threshold: Minimum cosine similarity for a chunk to match.
    """
    embedding = generate_embedding(query)
    client = get_supabase_client()
    result = client.rpc(
        "match_chunks",
        {
            "query_embedding": embedding,
            "match_org_id": org_id,
            "match_count": match_count,
            "match_threshold": threshold,
            "filter_recording_ids": recording_ids,
        },
    ).execute()
    # Supabase .data is typed as JSON (broad union); cast to concrete type.
    rows = _enrich_with_recording_titles(cast(list[dict[str, Any]], result.data or []))
    return [_to_transcript_result(r) for r in rows]
