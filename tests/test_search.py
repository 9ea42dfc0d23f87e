"""Tests for transcript vector search and the frame store (Supabase/OpenAI mocked)."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from agentic_rag.retrieval.search import search_transcripts
from agentic_rag.storage import FRAME_COLUMNS, fetch_video_frames

CHUNK_ROWS = [
    {
        "id": "chunk-1",
        "recording_id": "rec-1",
        "chunk_text": "We agreed to ship on Friday",
        "start_time_sec": 42,
        "similarity": 0.91,
    },
    {
        "id": "chunk-2",
        "recording_id": "rec-2",
        "recording_title": "Already titled",
        "chunk_text": "Budget review",
        "similarity": 0.83,
    },
]


class TestSearchTranscripts:
    @patch("agentic_rag.retrieval.search.get_supabase_client")
    @patch("agentic_rag.retrieval.search.generate_embedding", return_value=[0.1, 0.2])
    def test_calls_match_chunks_rpc(self, mock_embed: MagicMock, mock_client_fn: MagicMock) -> None:
        client = MagicMock()
        mock_client_fn.return_value = client
        client.rpc.return_value.execute.return_value.data = [dict(r) for r in CHUNK_ROWS]
        client.table.return_value.select.return_value.in_.return_value.execute.return_value.data = [
            {"id": "rec-1", "title": "Weekly sync"}
        ]

        results = search_transcripts("when do we ship?", org_id="org-1", recording_ids=["rec-1"])

        name, params = client.rpc.call_args.args
        assert name == "match_chunks"
        assert params["query_embedding"] == [0.1, 0.2]
        assert params["match_org_id"] == "org-1"
        assert params["filter_recording_ids"] == ["rec-1"]
        client.table.return_value.select.return_value.in_.assert_called_once_with("id", ["rec-1"])

        first, second = results
        assert first.chunk_id == "chunk-1"
        assert first.recording_title == "Weekly sync"
        assert first.timestamp == 42.0
        assert first.similarity == 0.91
        assert second.recording_title == "Already titled"
        assert second.timestamp is None

    @patch("agentic_rag.retrieval.search.get_supabase_client")
    @patch("agentic_rag.retrieval.search.generate_embedding", return_value=[0.1])
    def test_empty_results(self, mock_embed: MagicMock, mock_client_fn: MagicMock) -> None:
        client = MagicMock()
        mock_client_fn.return_value = client
        client.rpc.return_value.execute.return_value.data = []

        assert search_transcripts("anything", org_id="org-1") == []
        client.table.assert_not_called()

    @patch("agentic_rag.retrieval.search.get_supabase_client")
    @patch("agentic_rag.retrieval.search.generate_embedding")
    def test_errors_propagate(self, mock_embed: MagicMock, mock_client_fn: MagicMock) -> None:
        mock_embed.side_effect = RuntimeError("OpenAI down")

        with pytest.raises(RuntimeError, match="OpenAI down"):
            search_transcripts("anything", org_id="org-1")
        mock_client_fn.assert_not_called()


class TestFetchVideoFrames:
    @patch("agentic_rag.storage.get_supabase_client")
    def test_scoped_by_org(self, mock_client_fn: MagicMock) -> None:
        client = MagicMock()
        mock_client_fn.return_value = client
        query = client.table.return_value.select.return_value.eq.return_value
        query.limit.return_value.execute.return_value.data = [{"id": "frame-1"}]

        rows = fetch_video_frames("org-1")

        client.table.assert_called_once_with("video_frames")
        client.table.return_value.select.assert_called_once_with(FRAME_COLUMNS)
        client.table.return_value.select.return_value.eq.assert_called_once_with("org_id", "org-1")
        query.in_.assert_not_called()
        assert rows == [{"id": "frame-1"}]

    @patch("agentic_rag.storage.get_supabase_client")
    def test_filters_recording_ids(self, mock_client_fn: MagicMock) -> None:
        client = MagicMock()
        mock_client_fn.return_value = client
        query = client.table.return_value.select.return_value.eq.return_value
        query.in_.return_value.limit.return_value.execute.return_value.data = None

        rows = fetch_video_frames("org-1", ["rec-1", "rec-2"])

        query.in_.assert_called_once_with("recording_id", ["rec-1", "rec-2"])
        assert rows == []

    def test_selects_embedding_and_description(self) -> None:
        assert "visual_embedding" in FRAME_COLUMNS
        assert "visual_description" in FRAME_COLUMNS
