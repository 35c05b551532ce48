"""Standardized logger setup for the pipeline."""

from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "audio_summary"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger inside the package namespace.

    Usage:
        from audio_summary.utils.logger import get_logger
        logger = get_logger(__name__)
    """
    return logging.getLogger(name or PACKAGE_LOGGER)


def configure_logger(
    level: str = "INFO",
    rich_output: bool = True,
    format_string: Optional[str] = None,
    file_path: Optional[str] = None,
    console: Optional[Console] = None,
) -> logging.Logger:
    """Configure the package logger.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        rich_output: Render records with Rich instead of a plain formatter
        format_string: Format for plain and file output
        file_path: Also write records to this file when set
        console: Rich console to render to (stderr by default)

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    format_string = format_string or DEFAULT_FORMAT

    # Prevent duplicate handlers if called multiple times
    def _has_handler_of_type(h_type: type) -> bool:
        return any(type(h) is h_type for h in logger.handlers)

    if rich_output:
        if not _has_handler_of_type(RichHandler):
            handler = RichHandler(
                console=console or Console(stderr=True),
                show_time=True,
                show_path=level.upper() == "DEBUG",
                rich_tracebacks=True,
            )
            logger.addHandler(handler)
    elif not _has_handler_of_type(logging.StreamHandler):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(format_string, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)

    if file_path and not _has_handler_of_type(logging.FileHandler):
        file_handler = logging.FileHandler(file_path)
        file_handler.setFormatter(logging.Formatter(format_string))
        logger.addHandler(file_handler)

    logger.setLevel(getattr(logging, level.upper()))
    return logger


def configure_from_config(config) -> logging.Logger:
    """Configure the package logger from a ``Config`` instance."""
    return configure_logger(
        level=config.log_level,
        rich_output=config.rich_output,
        file_path=config.log_file,
    )
