"""Runtime orchestration primitives for recording jest test files."""

from .orchestrator import ReplayOrchestrator
from .session import RecordingSession, make_recordings_directory

__all__ = [
    "RecordingSession",
    "ReplayOrchestrator",
    "make_recordings_directory",
]
