"""Progress reporting components shared by the pipelines."""

from src.pipeline.progress_tracker import ProgressReporter, ProgressTracker

__all__ = [
    "ProgressReporter",
    "ProgressTracker",
]
