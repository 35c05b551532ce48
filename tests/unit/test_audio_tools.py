"""Tests for FFmpegAudioToolkit with the subprocess layer mocked."""
from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from audio_summary.errors import SegmentationError
from audio_summary.services.audio_tools import FFmpegAudioToolkit


def _process(returncode=0, stdout=b"", stderr=b""):
    proc = MagicMock()
    proc.returncode = returncode
    proc.communicate = AsyncMock(return_value=(stdout, stderr))
    return proc


class TestProbeDuration:
    """Tests for FFmpegAudioToolkit.probe_duration."""

    @pytest.mark.asyncio
    async def test_duration_rounded(self, tmp_path):
        output = json.dumps({"format": {"duration": "3599.6"}}).encode()
        with patch(
            "audio_summary.services.audio_tools.asyncio.create_subprocess_exec",
            new=AsyncMock(return_value=_process(stdout=output)),
        ) as mock_exec:
            duration = await FFmpegAudioToolkit(ffprobe_binary="/opt/ffprobe").probe_duration(tmp_path / "a.mp3")

        assert duration == 3600
        assert mock_exec.call_args.args[0] == "/opt/ffprobe"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "proc",
        [
            _process(returncode=1),
            _process(stdout=b"not json"),
            _process(stdout=json.dumps({"format": {}}).encode()),
            _process(stdout=json.dumps({"format": {"duration": "N/A"}}).encode()),
        ],
    )
    async def test_unreadable_duration(self, tmp_path, proc):
        """Test that probe failures yield None instead of raising."""
        with patch(
            "audio_summary.services.audio_tools.asyncio.create_subprocess_exec",
            new=AsyncMock(return_value=proc),
        ):
            assert await FFmpegAudioToolkit().probe_duration(tmp_path / "a.mp3") is None

    @pytest.mark.asyncio
    async def test_missing_binary(self, tmp_path):
        with patch(
            "audio_summary.services.audio_tools.asyncio.create_subprocess_exec",
            new=AsyncMock(side_effect=FileNotFoundError("ffprobe")),
        ):
            assert await FFmpegAudioToolkit().probe_duration(tmp_path / "a.mp3") is None


class TestSegment:
    """Tests for FFmpegAudioToolkit.segment."""

    @pytest.mark.asyncio
    async def test_returns_sorted_pieces(self, tmp_path):
        source = tmp_path / "talk.mp3"
        out_dir = tmp_path / "out"
        out_dir.mkdir()

        async def fake_exec(*cmd, **kwargs):
            for name in ("chunk-002.mp3", "chunk-000.mp3", "chunk-001.mp3"):
                (out_dir / name).write_bytes(b"\x00")
            return _process()

        with patch("audio_summary.services.audio_tools.asyncio.create_subprocess_exec", new=fake_exec):
            pieces = await FFmpegAudioToolkit().segment(source, 1200, out_dir)

        assert [piece.name for piece in pieces] == ["chunk-000.mp3", "chunk-001.mp3", "chunk-002.mp3"]

    @pytest.mark.asyncio
    async def test_ffmpeg_failure(self, tmp_path):
        proc = _process(returncode=1, stderr=b"first line\nInvalid data found when processing input\n")
        with patch(
            "audio_summary.services.audio_tools.asyncio.create_subprocess_exec",
            new=AsyncMock(return_value=proc),
        ):
            with pytest.raises(SegmentationError, match="Invalid data found"):
                await FFmpegAudioToolkit().segment(tmp_path / "talk.mp3", 60, tmp_path)

    @pytest.mark.asyncio
    async def test_no_output_pieces(self, tmp_path):
        with patch(
            "audio_summary.services.audio_tools.asyncio.create_subprocess_exec",
            new=AsyncMock(return_value=_process()),
        ):
            with pytest.raises(SegmentationError, match="no segments"):
                await FFmpegAudioToolkit().segment(tmp_path / "talk.mp3", 60, tmp_path)

    @pytest.mark.asyncio
    async def test_ffmpeg_cannot_start(self, tmp_path):
        with patch(
            "audio_summary.services.audio_tools.asyncio.create_subprocess_exec",
            new=AsyncMock(side_effect=PermissionError("denied")),
        ):
            with pytest.raises(SegmentationError, match="Failed to start ffmpeg"):
                await FFmpegAudioToolkit().segment(tmp_path / "talk.mp3", 60, tmp_path)


class TestIsAvailable:
    """Tests for FFmpegAudioToolkit.is_available."""

    def test_requires_both_binaries(self):
        with patch("audio_summary.services.audio_tools.shutil.which", side_effect=["/usr/bin/ffmpeg", None]):
            assert FFmpegAudioToolkit().is_available() is False
