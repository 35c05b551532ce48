"""Merge per-chunk summaries into a single document."""
from __future__ import annotations

import logging
from typing import Iterable, List, Sequence

from ..models import MergedDocument, StructuredSummary, SummarySection, SummaryUnit

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "No title found"

_MERGED_LISTS = ("main_points", "action_items", "follow_up", "stories", "references", "arguments")


def _flatten(lists: Iterable[List[str]]) -> List[str]:
    return [item for items in lists for item in items if item and item.strip()]


def merge_summaries(
    summaries: Sequence[StructuredSummary],
    units: Sequence[SummaryUnit],
    sections: Sequence[SummarySection],
) -> MergedDocument:
    """Combine chunk summaries in chunk order.

    Title and sentiment come from the first chunk. Summaries are joined
    with spaces and list sections are concatenated with blank entries
    dropped. Related topics are lower-cased, de-duplicated and sorted, and
    kept only when at least two distinct topics remain.

    Args:
        summaries: Parsed summary per chunk, in chunk order
        units: Completion results the summaries were parsed from
        sections: Sections the caller asked for

    Returns:
        MergedDocument with ``tokens`` summed across every completion
    """
    if not summaries:
        raise ValueError("merge_summaries needs at least one summary")

    first = summaries[0]
    document = MergedDocument(
        title=first.title.strip() or DEFAULT_TITLE,
        summary=" ".join(s.summary.strip() for s in summaries if s.summary.strip()),
        tokens=sum(unit.usage.total_tokens for unit in units),
    )
    for name in _MERGED_LISTS:
        setattr(document, name, _flatten(getattr(s, name) for s in summaries))

    if SummarySection.RELATED_TOPICS in sections:
        topics = sorted({topic.strip().lower() for topic in _flatten(s.related_topics for s in summaries)})
        if len(topics) >= 2:
            document.related_topics = topics
        else:
            logger.debug(f"Dropping related topics; only {len(topics)} distinct topic(s)")

    if SummarySection.SENTIMENT in sections and first.sentiment:
        document.sentiment = first.sentiment

    logger.info(f"Merged {len(summaries)} chunk summaries into '{document.title}'")
    return document
