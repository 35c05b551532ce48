"""Input validation for source recordings."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from ..errors import FileTooLargeError, InputValidationError, UnsupportedFileTypeError
from ..models import AudioFile

logger = logging.getLogger(__name__)


def _normalize_extensions(extensions: Iterable[str]) -> set:
    return {ext.lower().lstrip(".") for ext in extensions}


def validate_audio_file(
    file_path: Path | str, allowed_extensions: Iterable[str], max_file_size: int
) -> AudioFile:
    """Check that a source file exists, has a supported type and fits the size limit.

    Args:
        file_path: Path to the recording
        allowed_extensions: Accepted extensions, with or without a leading dot
        max_file_size: Maximum accepted size in bytes

    Returns:
        AudioFile describing the recording (duration not yet probed)

    Raises:
        InputValidationError: If the path is missing or not a file
        UnsupportedFileTypeError: If the extension is not accepted
        FileTooLargeError: If the file exceeds ``max_file_size``
    """
    path = Path(file_path)
    if not path.exists():
        logger.error(f"Audio file not found: {path}")
        raise InputValidationError(f"Audio file not found: {path}")
    if not path.is_file():
        logger.error(f"Path is not a file: {path}")
        raise InputValidationError(f"Path is not a file: {path}")

    audio_file = AudioFile.from_path(path)

    allowed = _normalize_extensions(allowed_extensions)
    if audio_file.extension not in allowed:
        logger.error(f"Unsupported file type '{audio_file.extension}' for {path.name}")
        raise UnsupportedFileTypeError(
            f"Unsupported file type '{audio_file.extension}'. "
            f"Supported types: {', '.join(sorted(allowed))}"
        )

    if audio_file.size_bytes > max_file_size:
        size_mb = audio_file.size_bytes / (1024 * 1024)
        limit_mb = max_file_size / (1024 * 1024)
        logger.error(f"File too large: {size_mb:.1f}MB exceeds limit of {limit_mb:.1f}MB")
        raise FileTooLargeError(
            f"File too large: {size_mb:.1f}MB exceeds limit of {limit_mb:.1f}MB",
            size_bytes=audio_file.size_bytes,
            limit_bytes=max_file_size,
        )

    logger.debug(f"Validated audio file: {path} ({audio_file.size_bytes} bytes)")
    return audio_file
