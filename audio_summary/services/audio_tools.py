"""Duration probing and segmentation of audio files."""
from __future__ import annotations

import asyncio
import json
import logging
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from ..errors import SegmentationError
from .ffmpeg_core import SEGMENT_PREFIX, build_probe_command, build_segment_command

logger = logging.getLogger(__name__)


class AudioToolkit(ABC):
    """Abstract base for the external audio tools the pipeline needs."""

    @abstractmethod
    async def probe_duration(self, path: Path) -> Optional[int]:
        """Return the duration in whole seconds, or None if it cannot be read."""

    @abstractmethod
    async def segment(self, path: Path, segment_seconds: int, out_dir: Path) -> List[Path]:
        """Split ``path`` into pieces of ``segment_seconds`` inside ``out_dir``.

        Returns:
            Piece paths in playback order
        """


class FFmpegAudioToolkit(AudioToolkit):
    """AudioToolkit backed by the ffprobe and ffmpeg binaries."""

    def __init__(self, ffmpeg_binary: str = "ffmpeg", ffprobe_binary: str = "ffprobe") -> None:
        self.ffmpeg_binary = ffmpeg_binary
        self.ffprobe_binary = ffprobe_binary

    def is_available(self) -> bool:
        return shutil.which(self.ffmpeg_binary) is not None and shutil.which(self.ffprobe_binary) is not None

    async def probe_duration(self, path: Path) -> Optional[int]:
        """Get audio duration in seconds using ffprobe.

        Returns:
            Duration rounded to whole seconds, or None if unable to determine
        """
        cmd = build_probe_command(path)
        cmd[0] = self.ffprobe_binary
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
            )
            stdout, _ = await proc.communicate()
        except OSError as e:
            logger.warning(f"Failed to run ffprobe on {path.name}: {e}")
            return None

        if proc.returncode != 0:
            logger.warning(f"ffprobe exited with code {proc.returncode} for {path.name}")
            return None

        try:
            data = json.loads(stdout.decode())
            duration = float(data.get("format", {}).get("duration", 0))
        except (ValueError, TypeError) as e:
            logger.warning(f"Could not parse ffprobe output for {path.name}: {e}")
            return None

        return round(duration) if duration > 0 else None

    async def segment(self, path: Path, segment_seconds: int, out_dir: Path) -> List[Path]:
        """Split audio into stream-copied segments with ffmpeg.

        Raises:
            SegmentationError: If ffmpeg fails or produces no pieces
        """
        extension = path.suffix.lstrip(".") or "mp3"
        cmd = build_segment_command(path, segment_seconds, out_dir, extension)
        cmd[0] = self.ffmpeg_binary
        logger.info(f"Splitting {path.name} into {segment_seconds}s segments")

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
            )
            _, stderr = await proc.communicate()
        except OSError as e:
            raise SegmentationError(f"Failed to start ffmpeg: {e}") from e

        if proc.returncode != 0:
            error_msg = stderr.decode(errors="replace").strip().splitlines()[-1:] or ["unknown error"]
            logger.error(f"ffmpeg segmentation failed: {error_msg[0]}")
            raise SegmentationError(f"ffmpeg segmentation failed: {error_msg[0]}")

        pieces = sorted(out_dir.glob(f"{SEGMENT_PREFIX}*.{extension}"))
        if not pieces:
            raise SegmentationError(f"ffmpeg produced no segments for {path.name}")

        logger.info(f"Created {len(pieces)} segments from {path.name}")
        return pieces
