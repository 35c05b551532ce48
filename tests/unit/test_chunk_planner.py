"""Tests for chunk planning and piece preparation."""
from __future__ import annotations

import pytest

from audio_summary.errors import SegmentationError
from audio_summary.models import AudioFile, ChunkPlan
from audio_summary.services.chunk_planner import plan_chunks, prepare_pieces

MB = 1024 * 1024


class TestPlanChunks:
    """Tests for plan_chunks."""

    def test_small_file_needs_no_split(self):
        plan = plan_chunks(10 * MB, 24 * MB, 600)
        assert plan == ChunkPlan(chunk_count=1)
        assert not plan.requires_split

    def test_exactly_at_limit_is_single_piece(self):
        assert plan_chunks(24 * MB, 24 * MB, 600).chunk_count == 1

    def test_empty_file_is_single_piece(self):
        assert plan_chunks(0, 24 * MB, None).chunk_count == 1

    def test_large_file_split_by_size(self):
        """Test that 50MB over a 24MB limit gives three 1200s segments for one hour."""
        plan = plan_chunks(50 * MB, 24 * MB, 3600)
        assert plan.chunk_count == 3
        assert plan.segment_seconds == 1200
        assert plan.requires_split

    def test_segment_length_rounds_up(self):
        plan = plan_chunks(25 * MB, 24 * MB, 1001)
        assert plan.chunk_count == 2
        assert plan.segment_seconds == 501

    def test_single_piece_tolerates_unknown_duration(self):
        assert plan_chunks(MB, 24 * MB, None).segment_seconds is None

    def test_split_with_unknown_duration_fails(self):
        with pytest.raises(SegmentationError, match="duration is unknown"):
            plan_chunks(50 * MB, 24 * MB, None)

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            plan_chunks(MB, 0, 60)


class TestPreparePieces:
    """Tests for prepare_pieces."""

    @pytest.mark.asyncio
    async def test_single_piece_uses_source(self, tmp_path, make_toolkit):
        """Test that an unsplit recording is sent as-is and never marked temporary."""
        source = tmp_path / "talk.mp3"
        source.write_bytes(b"audio")
        toolkit = make_toolkit(duration=60)

        pieces = await prepare_pieces(AudioFile.from_path(source), ChunkPlan(1), toolkit, tmp_path)

        assert len(pieces) == 1
        assert pieces[0].path == source
        assert pieces[0].temporary is False
        assert toolkit.segment_calls == []

    @pytest.mark.asyncio
    async def test_split_pieces_are_temporary(self, tmp_path, make_toolkit):
        source = tmp_path / "talk.mp3"
        source.write_bytes(b"audio")
        out_dir = tmp_path / "pieces"
        out_dir.mkdir()
        toolkit = make_toolkit(duration=3600)

        pieces = await prepare_pieces(
            AudioFile.from_path(source), ChunkPlan(3, segment_seconds=1200), toolkit, out_dir
        )

        assert [piece.index for piece in pieces] == [0, 1, 2]
        assert all(piece.temporary for piece in pieces)
        assert [piece.path.name for piece in pieces] == ["chunk-000.mp3", "chunk-001.mp3", "chunk-002.mp3"]
        assert toolkit.segment_calls[0]["segment_seconds"] == 1200

    @pytest.mark.asyncio
    async def test_segmenter_count_mismatch_is_accepted(self, tmp_path, make_toolkit):
        """Test that the segmenter's actual output is used when it differs from the plan."""
        source = tmp_path / "talk.mp3"
        source.write_bytes(b"audio")
        toolkit = make_toolkit(duration=3600, piece_count=4)

        pieces = await prepare_pieces(
            AudioFile.from_path(source), ChunkPlan(3, segment_seconds=1200), toolkit, tmp_path
        )

        assert len(pieces) == 4
