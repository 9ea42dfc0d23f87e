"""Pydantic request/response schemas for the agentic retrieval API."""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, model_serializer

from agentic_rag.retrieval_config import QueryIntent


class DecomposeRequest(BaseModel):
    """Request body for the /api/query/decompose endpoint."""

    query: str = Field(min_length=1)


class SubQueryModel(BaseModel):
    id: str
    text: str
    intent: QueryIntent
    dependency: str | None = None
    priority: int = 3


class DecompositionModel(BaseModel):
    original_query: str
    sub_queries: list[SubQueryModel]
    intent: QueryIntent
    complexity: int
    reasoning: str


class DecomposeResponse(DecompositionModel):
    """Response body for /api/query/decompose: the decomposition plus its batches."""

    batches: list[list[str]]


class MultimodalSearchRequest(BaseModel):
    """Request body for the /api/search/multimodal endpoint."""

    query: str = Field(min_length=1)
    org_id: str = Field(min_length=1)
    recording_ids: list[str] | None = None
    audio_weight: float = 0.7
    visual_weight: float = 0.3
    limit: int | None = Field(default=None, ge=1)
    include_frames: bool = True


class AgenticSearchRequest(BaseModel):
    """Request body for the /api/search/agentic endpoint."""

    query: str = Field(min_length=1)
    org_id: str = Field(min_length=1)
    recording_ids: list[str] | None = None
    audio_weight: float = 0.7
    visual_weight: float = 0.3
    include_frames: bool = True


class TranscriptResultModel(BaseModel):
    """A retrieved transcript chunk."""

    chunk_id: str
    recording_id: str
    recording_title: str | None = None
    text: str
    similarity: float
    timestamp: float | None = None


class VisualFrameResultModel(BaseModel):
    """A retrieved video frame.  ``ocr_text`` is omitted when the frame has none."""

    frame_id: str
    recording_id: str
    recording_title: str | None = None
    frame_time_sec: float
    frame_url: str
    visual_description: str
    similarity: float
    ocr_text: str | None = None

    @model_serializer(mode="wrap")
    def _omit_missing_ocr(self, handler: Any) -> dict[str, Any]:
        data: dict[str, Any] = handler(self)
        if not data.get("ocr_text"):
            data.pop("ocr_text", None)
        return data


class CombinedTranscriptModel(TranscriptResultModel):
    type: Literal["transcript"] = "transcript"
    final_score: float


class CombinedVisualModel(VisualFrameResultModel):
    type: Literal["visual"] = "visual"
    final_score: float


CombinedResultModel = Annotated[
    CombinedTranscriptModel | CombinedVisualModel, Field(discriminator="type")
]


class SearchMetadataModel(BaseModel):
    transcript_count: int
    visual_count: int
    combined_count: int
    audio_weight: float
    visual_weight: float


class MultimodalSearchResponse(BaseModel):
    """Response body for the /api/search/multimodal endpoint."""

    transcript_results: list[TranscriptResultModel]
    visual_results: list[VisualFrameResultModel]
    combined_results: list[CombinedResultModel]
    metadata: SearchMetadataModel


class IterationModel(BaseModel):
    iteration_number: int
    sub_query: SubQueryModel
    results: list[CombinedResultModel]
    duration_ms: int


class AgenticSearchResponse(BaseModel):
    """Response body for the /api/search/agentic endpoint."""

    query: str
    decomposition: DecompositionModel
    batches: list[list[str]]
    iterations: list[IterationModel]
    final_results: list[CombinedResultModel]
    reasoning: str
    duration_ms: int
    metadata: dict[str, int]
    citation_map: dict[str, list[str]] = {}
