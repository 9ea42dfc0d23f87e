"""Decomposition endpoint: show how a query would be split and scheduled."""

from __future__ import annotations

from dataclasses import asdict

from anthropic import APIStatusError
from fastapi import APIRouter, HTTPException

from agentic_rag.api.models import DecomposeRequest, DecomposeResponse
from agentic_rag.retrieval.decomposition import decompose_query, plan_execution_order

router = APIRouter()


@router.post("/api/query/decompose", response_model=DecomposeResponse)
def decompose(request: DecomposeRequest) -> DecomposeResponse:
    """Decompose a query into sub-queries and plan their execution batches."""
    try:
        decomposition = decompose_query(request.query)
    except APIStatusError as exc:
        raise HTTPException(status_code=503, detail=f"LLM unavailable: {exc.message}") from exc

    batches = plan_execution_order(decomposition.sub_queries)
    return DecomposeResponse(
        **asdict(decomposition),
        batches=[[sq.id for sq in batch] for batch in batches],
    )
