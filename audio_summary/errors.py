"""Exception hierarchy for the summary pipeline.

Every stage failure is raised as a ``PipelineError`` subclass carrying the
stage name and, where one applies, the zero-based index of the offending
piece or chunk. Nothing below the pipeline catches these; a run either
returns a complete result or raises.
"""
from __future__ import annotations

from typing import Optional


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""


class PipelineError(Exception):
    """Base class for failures that abort a pipeline run.

    Attributes:
        stage: Pipeline stage that failed
        index: Zero-based index of the failing item, if any
    """

    stage = "pipeline"

    def __init__(self, message: str, index: Optional[int] = None, stage: Optional[str] = None) -> None:
        self.index = index
        if stage is not None:
            self.stage = stage
        super().__init__(message)


class InputValidationError(PipelineError):
    """Raised when the source file cannot be accepted."""

    stage = "validation"


class UnsupportedFileTypeError(InputValidationError):
    """Raised when the source file extension is not supported."""


class FileTooLargeError(InputValidationError):
    """Raised when the source file exceeds the configured size limit."""

    def __init__(self, message: str, size_bytes: int, limit_bytes: int) -> None:
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        super().__init__(message)


class DurationUnavailableError(PipelineError):
    """Raised when the audio duration cannot be determined and is required."""

    stage = "probe"


class SegmentationError(PipelineError):
    """Raised when the audio file cannot be split into pieces."""

    stage = "segmentation"


class TranscriptionStageError(PipelineError):
    """Raised when a piece cannot be transcribed."""

    stage = "transcription"


class ModerationFlaggedError(PipelineError):
    """Raised when the transcript is flagged by the moderation check."""

    stage = "moderation"


class SummarizationStageError(PipelineError):
    """Raised when a transcript chunk cannot be summarized."""

    stage = "summarization"


class StructuredOutputError(PipelineError):
    """Raised when a completion cannot be parsed into a summary object.

    Attributes:
        raw_content: Completion text as received from the model
    """

    stage = "repair"

    def __init__(self, index: Optional[int], raw_content: str, reason: str = "") -> None:
        self.raw_content = raw_content
        detail = f": {reason}" if reason else ""
        super().__init__(
            f"Could not parse structured output for chunk {index}{detail}", index=index
        )


class TranslationStageError(PipelineError):
    """Raised when language detection or transcript translation fails."""

    stage = "translation"
