"""Decide how many pieces a recording needs and produce them."""
from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import List, Optional

from ..errors import SegmentationError
from ..models import AudioFile, AudioPiece, ChunkPlan
from .audio_tools import AudioToolkit

logger = logging.getLogger(__name__)


def plan_chunks(file_size: int, max_chunk_size: int, duration_seconds: Optional[int]) -> ChunkPlan:
    """Compute the chunk plan for a recording.

    The number of pieces depends on byte size only; duration just sets how
    long each time-based segment is.

    Args:
        file_size: Size of the source file in bytes
        max_chunk_size: Largest upload the transcription service accepts, in bytes
        duration_seconds: Recording length, or None if unknown

    Returns:
        ChunkPlan with ``segment_seconds`` set only when a split is required

    Raises:
        SegmentationError: If a split is required but the duration is unknown
    """
    if max_chunk_size <= 0:
        raise ValueError("max_chunk_size must be positive")

    chunk_count = max(1, math.ceil(file_size / max_chunk_size))
    if chunk_count == 1:
        return ChunkPlan(chunk_count=1)

    if not duration_seconds:
        raise SegmentationError(
            f"File needs {chunk_count} pieces but its duration is unknown, "
            "so it cannot be split by time"
        )

    segment_seconds = math.ceil(duration_seconds / chunk_count)
    logger.debug(
        f"Planned {chunk_count} pieces of {segment_seconds}s for {file_size} bytes "
        f"({duration_seconds}s)"
    )
    return ChunkPlan(chunk_count=chunk_count, segment_seconds=segment_seconds)


async def prepare_pieces(
    audio_file: AudioFile, plan: ChunkPlan, toolkit: AudioToolkit, out_dir: Path
) -> List[AudioPiece]:
    """Produce the audio pieces described by ``plan``.

    With a single-piece plan the source file itself is returned and is not
    marked temporary. Otherwise every segment file is temporary.
    """
    if not plan.requires_split:
        return [AudioPiece(index=0, path=audio_file.path, temporary=False)]

    paths = await toolkit.segment(audio_file.path, plan.segment_seconds, out_dir)
    if len(paths) != plan.chunk_count:
        logger.info(f"Planned {plan.chunk_count} pieces, segmenter produced {len(paths)}")
    return [AudioPiece(index=i, path=path, temporary=True) for i, path in enumerate(paths)]
