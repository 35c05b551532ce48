"""Structured summary schema and merged document model."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

LIST_FIELDS = (
    "main_points",
    "action_items",
    "follow_up",
    "stories",
    "references",
    "arguments",
    "related_topics",
)


class StructuredSummary(BaseModel):
    """Summary object the completion model is asked to return for each chunk.

    Models are loose about types, so scalars are coerced to strings, a bare
    string in a list field becomes a one-item list and null entries are
    dropped. Unknown keys are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    summary: str = ""
    main_points: List[str] = []
    action_items: List[str] = []
    follow_up: List[str] = []
    stories: List[str] = []
    references: List[str] = []
    arguments: List[str] = []
    related_topics: List[str] = []
    sentiment: Optional[str] = None

    @field_validator("title", "summary", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)

    @field_validator("sentiment", mode="before")
    @classmethod
    def coerce_sentiment(cls, v: Any) -> Optional[str]:
        if v is None or v == "":
            return None
        return v if isinstance(v, str) else str(v)

    @field_validator(*LIST_FIELDS, mode="before")
    @classmethod
    def coerce_list(cls, v: Any) -> List[str]:
        if v is None:
            return []
        if isinstance(v, (str, int, float)):
            v = [v]
        if isinstance(v, dict):
            v = list(v.values())
        return [item if isinstance(item, str) else str(item) for item in v if item is not None]


@dataclass
class MergedDocument:
    """Single document assembled from every chunk summary."""

    title: str
    summary: str = ""
    main_points: List[str] = field(default_factory=list)
    action_items: List[str] = field(default_factory=list)
    follow_up: List[str] = field(default_factory=list)
    stories: List[str] = field(default_factory=list)
    references: List[str] = field(default_factory=list)
    arguments: List[str] = field(default_factory=list)
    related_topics: Optional[List[str]] = None
    sentiment: Optional[str] = None
    tokens: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "title": self.title,
            "summary": self.summary,
            "main_points": self.main_points,
            "action_items": self.action_items,
            "follow_up": self.follow_up,
            "stories": self.stories,
            "references": self.references,
            "arguments": self.arguments,
            "related_topics": self.related_topics,
            "sentiment": self.sentiment,
            "tokens": self.tokens,
        }
