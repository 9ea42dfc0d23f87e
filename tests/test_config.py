"""Tests for Settings, RetrievalConfig, enums, and logging setup."""

from __future__ import annotations

import logging

import pytest

from agentic_rag.config import Settings
from agentic_rag.logging_config import configure_logging
from agentic_rag.retrieval.models import CombinedTranscriptResult, CombinedVisualResult
from agentic_rag.retrieval_config import QueryIntent, RetrievalConfig, SearchModality

# ---------------------------------------------------------------------------
# Enum tests
# ---------------------------------------------------------------------------


class TestQueryIntent:
    def test_values(self) -> None:
        assert [i.value for i in QueryIntent] == [
            "single_fact",
            "comparison",
            "multi_part",
            "how_to",
            "exploration",
        ]

    def test_from_string(self) -> None:
        assert QueryIntent("how_to") is QueryIntent.HOW_TO

    def test_invalid_raises(self) -> None:
        with pytest.raises(ValueError):
            QueryIntent("invalid")

    def test_is_str_subclass(self) -> None:
        """Enum values behave as plain strings for JSON serialization."""
        assert isinstance(QueryIntent.COMPARISON, str)


class TestSearchModality:
    def test_values(self) -> None:
        assert SearchModality.TRANSCRIPT.value == "transcript"
        assert SearchModality.VISUAL.value == "visual"

    def test_combined_results_report_their_modality(self) -> None:
        transcript = CombinedTranscriptResult("c1", "rec-1", None, "text", 0.9)
        frame = CombinedVisualResult("f1", "rec-1", None, 1.0, "", "slide", 0.8)
        assert transcript.modality is SearchModality.TRANSCRIPT
        assert frame.modality is SearchModality.VISUAL
        assert frame.modality == frame.type


# ---------------------------------------------------------------------------
# Settings / RetrievalConfig
# ---------------------------------------------------------------------------


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("ENABLE_VISUAL_SEARCH", "MAX_SUBQUERIES", "AGENTIC_MAX_ITERATIONS"):
            monkeypatch.delenv(name, raising=False)

        s = Settings(_env_file=None)  # type: ignore[call-arg]

        assert s.enable_visual_search is True
        assert s.max_subqueries is None
        assert s.agentic_max_iterations == 3
        assert s.embedding_dimensions == 1536

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENABLE_VISUAL_SEARCH", "false")
        monkeypatch.setenv("MAX_SUBQUERIES", "3")
        monkeypatch.setenv("AGENTIC_MAX_ITERATIONS", "5")

        s = Settings(_env_file=None)  # type: ignore[call-arg]

        assert s.enable_visual_search is False
        assert s.max_subqueries == 3
        assert s.agentic_max_iterations == 5


class TestRetrievalConfig:
    def test_defaults(self) -> None:
        cfg = RetrievalConfig()
        assert cfg.enable_visual_search is True
        assert cfg.max_subqueries is None
        assert cfg.max_iterations == 3
        assert cfg.final_result_limit == 20

    def test_from_settings(self) -> None:
        s = Settings(  # type: ignore[call-arg]
            _env_file=None,
            enable_visual_search=False,
            max_subqueries=4,
            agentic_max_iterations=2,
        )

        cfg = RetrievalConfig.from_settings(s)

        assert cfg.enable_visual_search is False
        assert cfg.max_subqueries == 4
        assert cfg.max_iterations == 2

    def test_immutable(self) -> None:
        cfg = RetrievalConfig()
        with pytest.raises(AttributeError):
            cfg.max_subqueries = 2  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    def test_single_handler_on_repeat_calls(self) -> None:
        configure_logging("INFO")
        configure_logging("DEBUG")

        logger = logging.getLogger("agentic_rag")
        ours = [h for h in logger.handlers if getattr(h, "_agentic_rag", False)]
        assert len(ours) == 1
        assert logger.level == logging.DEBUG
