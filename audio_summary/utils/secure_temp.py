"""Secure temporary directory handling for audio pieces.

Pieces produced by the segmenter live in a private directory that is
removed when the run leaves the context manager, even on failure.
"""
from __future__ import annotations

import logging
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Iterable, Optional

logger = logging.getLogger(__name__)


@contextmanager
def secure_temp_directory(
    suffix: str = "",
    prefix: str = "audio-summary-",
    dir: Optional[Path] = None,
    permissions: int = 0o700,
) -> Generator[Path, None, None]:
    """Create secure temporary directory with restrictive permissions.

    Args:
        suffix: Directory name suffix
        prefix: Directory name prefix
        dir: Parent directory (defaults to system temp dir)
        permissions: Directory permissions in octal (default 0o700)

    Yields:
        Path to secure temporary directory

    Example:
        >>> with secure_temp_directory() as temp_dir:
        ...     output = temp_dir / "chunk-000.mp3"
        ... # Directory automatically deleted here
    """
    if dir is not None:
        Path(dir).mkdir(parents=True, exist_ok=True)
    temp_dir = Path(tempfile.mkdtemp(suffix=suffix, prefix=prefix, dir=str(dir) if dir else None))

    try:
        temp_dir.chmod(permissions)
    except OSError as e:
        logger.warning(f"Failed to set permissions on {temp_dir}: {e}")

    try:
        yield temp_dir
    finally:
        try:
            if temp_dir.exists():
                shutil.rmtree(temp_dir)
                logger.debug(f"Cleaned up temporary directory: {temp_dir}")
        except OSError as e:
            logger.warning(f"Failed to cleanup temp directory {temp_dir}: {e}")


def remove_files(paths: Iterable[Path]) -> int:
    """Delete files, logging instead of raising on failure.

    Returns:
        Number of files removed
    """
    removed = 0
    for path in paths:
        try:
            Path(path).unlink()
            removed += 1
            logger.debug(f"Removed temporary file: {path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to remove temporary file {path}: {e}")
    return removed
