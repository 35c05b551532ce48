"""Unit tests for ffmpeg_core.py - FFmpeg command construction.

Tests cover:
- ffprobe duration command
- Segment command flags (stream copy, segment muxer, timestamps)
- Segment output naming
- Path handling with spaces and special characters
- -y flag presence to prevent hangs
"""
from pathlib import Path

from audio_summary.services.ffmpeg_core import build_probe_command, build_segment_command, segment_pattern


class TestBuildProbeCommand:
    """Tests for build_probe_command."""

    def test_probe_command_structure(self):
        """Verify ffprobe prints only the container duration as JSON."""
        cmd = build_probe_command(Path("/test/talk.mp3"))

        assert cmd[0] == "ffprobe"
        assert cmd[cmd.index("-print_format") + 1] == "json"
        assert cmd[cmd.index("-show_entries") + 1] == "format=duration"
        assert cmd[-1] == "/test/talk.mp3"

    def test_probe_path_with_spaces(self):
        """Test path handling with spaces in filename."""
        input_path = Path("/test/my podcast episode.m4a")
        assert str(input_path) in build_probe_command(input_path)


class TestSegmentPattern:
    """Tests for segment_pattern."""

    def test_pattern_uses_chunk_prefix(self):
        assert segment_pattern(Path("/tmp/out"), "mp3") == Path("/tmp/out/chunk-%03d.mp3")

    def test_leading_dot_stripped(self):
        assert segment_pattern(Path("/tmp/out"), ".m4a").name == "chunk-%03d.m4a"


class TestBuildSegmentCommand:
    """Tests for build_segment_command."""

    def test_segment_command_structure(self):
        """Verify the command stream-copies audio into fixed-length segments."""
        cmd = build_segment_command(Path("/test/talk.mp3"), 1200, Path("/tmp/out"), "mp3")

        assert cmd[0] == "ffmpeg"
        assert cmd[cmd.index("-i") + 1] == "/test/talk.mp3"
        assert cmd[cmd.index("-c:a") + 1] == "copy"
        assert cmd[cmd.index("-f") + 1] == "segment"
        assert cmd[cmd.index("-segment_time") + 1] == "1200"
        assert cmd[cmd.index("-reset_timestamps") + 1] == "1"
        assert cmd[cmd.index("-map") + 1] == "0:a:0"
        assert cmd[-1] == "/tmp/out/chunk-%03d.mp3"

    def test_segment_command_overwrite_flag(self):
        """Verify -y flag is present to prevent interactive prompts."""
        cmd = build_segment_command(Path("/test/talk.mp3"), 60, Path("/tmp/out"), "mp3")
        assert "-y" in cmd, "Missing -y flag - could cause hangs on file overwrites"

    def test_segment_path_with_special_chars(self):
        """Test path handling with special characters."""
        input_path = Path("/test/file (1) [copy].wav")
        cmd = build_segment_command(input_path, 60, Path("/tmp/out"), "wav")

        assert str(input_path) in cmd
