"""Pipeline entry points."""

from .summary_pipeline import SummaryPipeline

__all__ = ["SummaryPipeline"]
