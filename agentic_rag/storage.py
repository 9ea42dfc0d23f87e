"""Supabase storage helpers for the video-frame store."""

from __future__ import annotations

from typing import Any, cast

from supabase import Client, create_client

from agentic_rag.config import settings

FRAME_COLUMNS = (
    "id, recording_id, frame_time_sec, frame_url, visual_description, "
    "ocr_text, visual_embedding, recordings(id, title)"
)

# Upper bound on candidate rows pulled for one in-process similarity scan.
MAX_FRAME_CANDIDATES = 1000


def get_supabase_client() -> Client:
    """Create and return a Supabase client from settings."""
    return create_client(settings.supabase_url, settings.supabase_key)


def fetch_video_frames(
    org_id: str,
    recording_ids: list[str] | None = None,
    limit: int = MAX_FRAME_CANDIDATES,
) -> list[dict[str, Any]]:
    """Fetch candidate frames (with precomputed visual embeddings) for an org.

    Args:
        org_id: Tenant scope; always applied.
        recording_ids: Optional subset of recordings to restrict to.
        limit: Maximum number of candidate rows.

    Returns:
        Raw ``video_frames`` rows joined with their recording ``{id, title}``.
    """
    client = get_supabase_client()
    query = client.table("video_frames").select(FRAME_COLUMNS).eq("org_id", org_id)
    if recording_ids:
        query = query.in_("recording_id", recording_ids)
    result = query.limit(limit).execute()
    # Supabase .data is typed as JSON (broad union); cast to concrete type.
    return cast(list[dict[str, Any]], result.data or [])
