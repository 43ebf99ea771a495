"""Results returned by the recording manager."""
from typing import Any, Dict

from pydantic import Field

from .base import CamelModel
from .session import SessionStatus


class StartResult(CamelModel):
    session_id: str
    status: str = "started"


class StopResult(CamelModel):
    session_id: str
    status: SessionStatus
    duration: float = Field(..., description="Seconds between start and end")


class Stats(CamelModel):
    """Aggregate counts over the registry."""
    active_recordings: int
    total_recordings: int
    completed_recordings: int
    failed_recordings: int
    system_resources: Dict[str, Any] = Field(default_factory=dict)
