"""FFmpeg and ffprobe command construction.

Commands are returned as argument lists for ``asyncio.create_subprocess_exec``.
"""
from __future__ import annotations

from pathlib import Path
from typing import List

SEGMENT_PREFIX = "chunk-"


def build_probe_command(input_path: Path) -> List[str]:
    """Build the ffprobe command that prints the container duration as JSON.

    Args:
        input_path: Path to the audio file to inspect.

    Returns:
        List of command arguments for ffprobe.
    """
    return [
        "ffprobe",
        "-v",
        "quiet",
        "-print_format",
        "json",
        "-show_entries",
        "format=duration",
        str(input_path),
    ]


def segment_pattern(out_dir: Path, extension: str) -> Path:
    """Output filename pattern for segment files, e.g. ``chunk-000.mp3``."""
    return out_dir / f"{SEGMENT_PREFIX}%03d.{extension.lstrip('.')}"


def build_segment_command(
    input_path: Path, segment_seconds: int, out_dir: Path, extension: str
) -> List[str]:
    """Build the ffmpeg command that splits audio into fixed-length segments.

    The first audio stream is stream-copied without re-encoding, so pieces
    keep the source container and each segment's timestamps restart at zero.

    Args:
        input_path: Path to the source audio file.
        segment_seconds: Target length of each segment in seconds.
        out_dir: Directory that receives the segment files.
        extension: Container extension for the segments.

    Returns:
        List of command arguments for ffmpeg.
    """
    return [
        "ffmpeg",
        "-hide_banner",
        "-loglevel",
        "info",
        "-y",
        "-analyzeduration",
        "0",
        "-probesize",
        "32k",
        "-thread_queue_size",
        "64",
        "-i",
        str(input_path),
        "-c:a",
        "copy",
        "-f",
        "segment",
        "-segment_time",
        str(segment_seconds),
        "-reset_timestamps",
        "1",
        "-map",
        "0:a:0",
        "-max_muxing_queue_size",
        "64",
        str(segment_pattern(out_dir, extension)),
    ]
