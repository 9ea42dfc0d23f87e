"""Search endpoints: single-shot multimodal search and multi-step agentic search."""

from __future__ import annotations

from dataclasses import asdict

import openai
from anthropic import APIStatusError
from fastapi import APIRouter, HTTPException

from agentic_rag.api.models import (
    AgenticSearchRequest,
    AgenticSearchResponse,
    MultimodalSearchRequest,
    MultimodalSearchResponse,
)
from agentic_rag.retrieval.agentic import agentic_search
from agentic_rag.retrieval.models import MultimodalSearchOptions
from agentic_rag.retrieval.multimodal import multimodal_search

router = APIRouter()


@router.post("/api/search/multimodal", response_model=MultimodalSearchResponse)
async def search_multimodal(request: MultimodalSearchRequest) -> MultimodalSearchResponse:
    """Search transcripts and video frames and return one fused ranking."""
    options = MultimodalSearchOptions(
        org_id=request.org_id,
        recording_ids=request.recording_ids,
        audio_weight=request.audio_weight,
        visual_weight=request.visual_weight,
        limit=request.limit,
        include_frames=request.include_frames,
    )
    try:
        result = await multimodal_search(request.query, options)
    except openai.APIError as exc:
        raise HTTPException(
            status_code=503, detail=f"Embedding service unavailable: {exc.message}"
        ) from exc

    return MultimodalSearchResponse.model_validate(asdict(result))


@router.post("/api/search/agentic", response_model=AgenticSearchResponse)
async def search_agentic(request: AgenticSearchRequest) -> AgenticSearchResponse:
    """Decompose the query, run its sub-queries batch by batch, and merge results."""
    options = MultimodalSearchOptions(
        org_id=request.org_id,
        recording_ids=request.recording_ids,
        audio_weight=request.audio_weight,
        visual_weight=request.visual_weight,
        include_frames=request.include_frames,
    )
    try:
        result = await agentic_search(request.query, options)
    except APIStatusError as exc:
        # Claude overloaded (529) or other upstream error: return 503 so the
        # client receives a proper JSON response with CORS headers intact.
        raise HTTPException(status_code=503, detail=f"LLM unavailable: {exc.message}") from exc
    except openai.APIError as exc:
        raise HTTPException(
            status_code=503, detail=f"Embedding service unavailable: {exc.message}"
        ) from exc

    return AgenticSearchResponse.model_validate(asdict(result))
