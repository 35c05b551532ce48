"""Data models for the audio summary pipeline.

This module provides the records exchanged between stages: audio pieces,
transcription units, transcript chunks, completion results, the merged
summary document and the cost ledger.
"""

from .pipeline import (
    AudioFile,
    AudioPiece,
    ChunkPlan,
    CostEntry,
    CostLedger,
    FullTranscript,
    PipelineContext,
    PipelineResult,
    SummaryRequest,
    SummarySection,
    SummaryUnit,
    TokenUsage,
    TranscriptChunk,
    TranscriptionUnit,
    Verbosity,
)
from .summary import LIST_FIELDS, MergedDocument, StructuredSummary

__all__ = [
    "AudioFile",
    "AudioPiece",
    "ChunkPlan",
    "CostEntry",
    "CostLedger",
    "FullTranscript",
    "LIST_FIELDS",
    "MergedDocument",
    "PipelineContext",
    "PipelineResult",
    "StructuredSummary",
    "SummaryRequest",
    "SummarySection",
    "SummaryUnit",
    "TokenUsage",
    "TranscriptChunk",
    "TranscriptionUnit",
    "Verbosity",
]
