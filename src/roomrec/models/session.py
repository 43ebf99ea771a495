"""Recording session model."""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import Field, PrivateAttr, computed_field

from .base import CamelModel
from .options import RecordingOptions


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStatus(str, Enum):
    INITIALIZING = "initializing"
    RECORDING = "recording"
    PAUSED = "paused"
    STOPPED = "stopped"
    COMPLETED = "completed"
    FAILED = "failed"


ENDED_STATUSES = frozenset({SessionStatus.STOPPED, SessionStatus.COMPLETED, SessionStatus.FAILED})


class Session(CamelModel):
    """One recording attempt.

    The encoder handle is private: it is never serialized and is dropped
    once the encoder process has exited.
    """

    id: str = Field(..., description="Unique session ID")
    room_id: str
    room_name: Optional[str] = None
    requested_by: str
    status: SessionStatus = SessionStatus.INITIALIZING
    start_time: datetime
    end_time: Optional[datetime] = None
    output_path: Optional[str] = None
    options: RecordingOptions
    error: Optional[str] = None

    _process: Optional[Any] = PrivateAttr(default=None)
    _clock: Callable[[], datetime] = PrivateAttr(default=_utcnow)

    @property
    def ended(self) -> bool:
        return self.status in ENDED_STATUSES

    @property
    def process(self) -> Optional[Any]:
        return self._process

    def attach_process(self, handle: Optional[Any]) -> None:
        self._process = handle

    def use_clock(self, clock: Callable[[], datetime]) -> None:
        """Take "now" for the running duration from ``clock``."""
        self._clock = clock

    def finish(self, status: SessionStatus, when: datetime, error: Optional[str] = None) -> None:
        """Move to an ended status, stamping ``end_time`` and dropping the handle."""
        self.status = status
        self.end_time = when
        if error is not None:
            self.error = error
        self._process = None

    @computed_field
    @property
    def duration(self) -> float:
        """Seconds recorded so far, or in total once ended."""
        end = self.end_time or self._clock()
        return (end - self.start_time).total_seconds()
