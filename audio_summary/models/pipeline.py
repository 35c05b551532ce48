"""Data models passed between pipeline stages."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from ..config import Config
    from .summary import MergedDocument


class SummarySection(str, Enum):
    """Optional sections a summary document can contain."""

    SUMMARY = "summary"
    MAIN_POINTS = "main_points"
    ACTION_ITEMS = "action_items"
    FOLLOW_UP = "follow_up"
    STORIES = "stories"
    REFERENCES = "references"
    ARGUMENTS = "arguments"
    RELATED_TOPICS = "related_topics"
    SENTIMENT = "sentiment"


class Verbosity(str, Enum):
    """How many items the model is asked to produce per list section."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class AudioFile:
    """Source recording handed to the pipeline."""

    path: Path
    size_bytes: int
    extension: str
    duration_seconds: Optional[int] = None

    @classmethod
    def from_path(cls, path: Path | str) -> "AudioFile":
        """Create from a file on disk, reading its size."""
        path = Path(path)
        return cls(
            path=path,
            size_bytes=path.stat().st_size,
            extension=path.suffix.lower().lstrip("."),
        )


@dataclass(frozen=True)
class ChunkPlan:
    """How a recording is divided before transcription."""

    chunk_count: int
    segment_seconds: Optional[int] = None

    def __post_init__(self) -> None:
        if self.chunk_count < 1:
            raise ValueError("chunk_count must be at least 1")

    @property
    def requires_split(self) -> bool:
        return self.chunk_count > 1


@dataclass
class AudioPiece:
    """One uploadable piece of the source recording."""

    index: int
    path: Path
    temporary: bool = False


@dataclass
class TranscriptionUnit:
    """Transcript text returned for a single audio piece."""

    index: int
    text: str
    usage_meta: Dict[str, Any] = field(default_factory=dict)


@dataclass
class FullTranscript:
    """Transcript assembled from every unit in order."""

    text: str
    unit_count: int


@dataclass
class TranscriptChunk:
    """A token-bounded slice of the transcript sent for summarization."""

    index: int
    text: str
    token_count: int


@dataclass
class TokenUsage:
    """Token counts reported by a completion call."""

    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        return TokenUsage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
        )

    def to_dict(self) -> Dict[str, int]:
        """Convert to dictionary for JSON serialization."""
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass
class SummaryUnit:
    """Raw completion returned for one transcript chunk."""

    index: int
    content: str
    usage: TokenUsage
    model: str


@dataclass
class CostEntry:
    """A single charge recorded against a pipeline run.

    Attributes:
        stage: Pipeline stage the charge belongs to
        cost: Charge in US dollars
        usage_metric: Billed quantity (minutes or tokens)
        unit: Unit of ``usage_metric``
        provider: Service that was billed
        model: Model that was billed
        note: Free-form detail, e.g. an unknown-rate warning
    """

    stage: str
    cost: float
    usage_metric: float
    unit: str
    provider: str
    model: str
    note: str = ""

    def __post_init__(self) -> None:
        if self.cost < 0:
            raise ValueError("cost must be non-negative")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "stage": self.stage,
            "cost": self.cost,
            "usage_metric": self.usage_metric,
            "unit": self.unit,
            "provider": self.provider,
            "model": self.model,
            "note": self.note,
        }


@dataclass
class CostLedger:
    """Append-only list of charges for one run."""

    entries: List[CostEntry] = field(default_factory=list)

    def add(self, entry: CostEntry) -> CostEntry:
        self.entries.append(entry)
        return entry

    @property
    def total(self) -> float:
        return sum(entry.cost for entry in self.entries)

    def by_stage(self, stage: str) -> List[CostEntry]:
        return [entry for entry in self.entries if entry.stage == stage]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "entries": [entry.to_dict() for entry in self.entries],
            "total": self.total,
        }


@dataclass
class SummaryRequest:
    """Per-run summarization options."""

    sections: List[SummarySection] = field(
        default_factory=lambda: [
            SummarySection.SUMMARY,
            SummarySection.MAIN_POINTS,
            SummarySection.ACTION_ITEMS,
            SummarySection.FOLLOW_UP,
            SummarySection.RELATED_TOPICS,
        ]
    )
    verbosity: Verbosity = Verbosity.MEDIUM
    summary_language: Optional[str] = None
    translate_transcript: bool = False
    temperature: float = 0.2

    def __post_init__(self) -> None:
        self.sections = [SummarySection(section) for section in self.sections]
        self.verbosity = Verbosity(self.verbosity)

    def has(self, section: SummarySection) -> bool:
        return section in self.sections

    @classmethod
    def from_config(cls, config: "Config") -> "SummaryRequest":
        """Build the default request from configuration."""
        return cls(
            sections=[SummarySection(name) for name in config.summary_sections],
            verbosity=Verbosity(config.verbosity),
            summary_language=config.summary_language,
            translate_transcript=config.translate_transcript,
            temperature=config.temperature,
        )


@dataclass
class PipelineContext:
    """State owned by a single pipeline run."""

    config: "Config"
    ledger: CostLedger = field(default_factory=CostLedger)
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    started_at: datetime = field(default_factory=datetime.now)
    audio_file: Optional[AudioFile] = None
    plan: Optional[ChunkPlan] = None
    transcript_language: Optional[str] = None
    completion_usage: TokenUsage = field(default_factory=TokenUsage)
    stage_durations: Dict[str, float] = field(default_factory=dict)


@dataclass
class PipelineResult:
    """Everything handed to the destination document builder."""

    document: "MergedDocument"
    ledger: CostLedger
    transcript: FullTranscript
    paragraphs: List[str]
    chunk_count: int
    piece_count: int
    duration_seconds: Optional[int]
    transcript_language: Optional[str] = None
    translated_paragraphs: Optional[List[str]] = None
    summary_paragraphs: List[str] = field(default_factory=list)
    stage_durations: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "document": self.document.to_dict(),
            "cost": self.ledger.to_dict(),
            "transcript": self.transcript.text,
            "paragraphs": self.paragraphs,
            "translated_paragraphs": self.translated_paragraphs,
            "summary_paragraphs": self.summary_paragraphs,
            "stage_durations": self.stage_durations,
            "transcript_language": self.transcript_language,
            "chunk_count": self.chunk_count,
            "piece_count": self.piece_count,
            "duration_seconds": self.duration_seconds,
        }
