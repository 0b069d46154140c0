"""Fax job processing: the per-job pipeline and the poll loop."""

from astfax.jobs.pipeline import FaxPipeline, PipelineResult
from astfax.jobs.poll import CycleSummary, PollLoop

__all__ = [
    "CycleSummary",
    "FaxPipeline",
    "PipelineResult",
    "PollLoop",
]
