"""Runtime helpers used by the disk evolution engine."""

from .history import RecordHistory
from .progress import ProgressReporter

__all__ = [
    "ProgressReporter",
    "RecordHistory",
]
