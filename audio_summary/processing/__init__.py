"""Pure text processing: token splitting, JSON repair, paragraphs and merging."""

from .json_repair_chain import RepairResult, RepairStage, parse_structured_summary, repair_structured_output
from .merge import merge_summaries
from .paragraphs import make_paragraphs
from .token_splitter import find_longest_gap, split_transcript

__all__ = [
    "RepairResult",
    "RepairStage",
    "find_longest_gap",
    "make_paragraphs",
    "merge_summaries",
    "parse_structured_summary",
    "repair_structured_output",
    "split_transcript",
]
