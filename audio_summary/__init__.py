"""Audio transcription and summarization pipeline.

Chunks long recordings, transcribes the pieces concurrently, splits the
transcript on sentence boundaries, summarizes each chunk into a fixed JSON
schema and merges the results into one cost-accounted document.
"""

from .config import Config, get_config
from .errors import PipelineError
from .models import PipelineResult, SummaryRequest, SummarySection, Verbosity
from .pipeline import SummaryPipeline

__version__ = "1.0.0"

__all__ = [
    "Config",
    "PipelineError",
    "PipelineResult",
    "SummaryPipeline",
    "SummaryRequest",
    "SummarySection",
    "Verbosity",
    "get_config",
]
