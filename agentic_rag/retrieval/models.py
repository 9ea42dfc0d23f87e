"""Data models for decomposition, planning and multimodal retrieval.

Everything here is request-scoped; nothing is persisted by the retrieval core.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

from agentic_rag.retrieval_config import QueryIntent, SearchModality

DEFAULT_PRIORITY = 3


@dataclass
class SubQuery:
    """One atomic, independently answerable question."""

    id: str
    text: str
    intent: QueryIntent = QueryIntent.SINGLE_FACT
    dependency: str | None = None
    priority: int = DEFAULT_PRIORITY  # 1-5, 5 = highest


@dataclass
class IntentClassification:
    """Output of the intent classifier."""

    intent: QueryIntent
    confidence: float
    complexity: int  # 1-5
    reasoning: str


@dataclass
class QueryDecomposition:
    """A query broken into sub-queries, with the classifier's verdict."""

    original_query: str
    sub_queries: list[SubQuery]
    intent: QueryIntent
    complexity: int
    reasoning: str


@dataclass
class TranscriptResult:
    """A transcript chunk matched by the vector-search collaborator."""

    chunk_id: str
    recording_id: str
    recording_title: str | None
    text: str
    similarity: float
    timestamp: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class VisualFrameResult:
    """A video frame whose visual embedding matched the query."""

    frame_id: str
    recording_id: str
    recording_title: str | None
    frame_time_sec: float
    frame_url: str
    visual_description: str
    similarity: float
    ocr_text: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if not self.ocr_text:
            data.pop("ocr_text")
        return data


@dataclass
class CombinedTranscriptResult(TranscriptResult):
    """Transcript-origin entry of the fused ranking."""

    final_score: float = 0.0
    type: Literal["transcript"] = "transcript"

    @property
    def result_id(self) -> str:
        return self.chunk_id

    @property
    def modality(self) -> SearchModality:
        return SearchModality.TRANSCRIPT


@dataclass
class CombinedVisualResult(VisualFrameResult):
    """Frame-origin entry of the fused ranking."""

    final_score: float = 0.0
    type: Literal["visual"] = "visual"

    @property
    def result_id(self) -> str:
        return self.frame_id

    @property
    def modality(self) -> SearchModality:
        return SearchModality.VISUAL


CombinedResult = CombinedTranscriptResult | CombinedVisualResult


@dataclass
class MultimodalSearchOptions:
    """Options for a single multimodal search call."""

    org_id: str
    recording_ids: list[str] | None = None
    audio_weight: float = 0.7
    visual_weight: float = 0.3
    limit: int | None = None
    include_frames: bool = True


@dataclass
class SearchMetadata:
    transcript_count: int
    visual_count: int
    combined_count: int
    audio_weight: float
    visual_weight: float


@dataclass
class MultimodalSearchResult:
    transcript_results: list[TranscriptResult]
    visual_results: list[VisualFrameResult]
    combined_results: list[CombinedResult]
    metadata: SearchMetadata


@dataclass
class IterationResult:
    """Results retrieved for one sub-query during agentic search."""

    iteration_number: int
    sub_query: SubQuery
    results: list[CombinedResult] = field(default_factory=list)
    duration_ms: int = 0


@dataclass
class AgenticSearchResult:
    query: str
    decomposition: QueryDecomposition
    batches: list[list[str]]
    iterations: list[IterationResult]
    final_results: list[CombinedResult]
    reasoning: str
    duration_ms: int
    metadata: dict[str, int] = field(default_factory=dict)
    # result id -> ids of the sub-queries that retrieved it
    citation_map: dict[str, list[str]] = field(default_factory=dict)
