"""Data models for roomrec."""
from .options import Encoding, Layout, RecordingOptions, Resolution
from .results import StartResult, Stats, StopResult
from .session import ENDED_STATUSES, Session, SessionStatus

__all__ = [
    "ENDED_STATUSES",
    "Encoding",
    "Layout",
    "RecordingOptions",
    "Resolution",
    "Session",
    "SessionStatus",
    "StartResult",
    "Stats",
    "StopResult",
]
