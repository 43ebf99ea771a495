"""Errors raised by the recording core."""
from pathlib import Path
from typing import Union


class RecordingError(Exception):
    """Base class for recording service errors."""


class CapacityExceeded(RecordingError):
    """The concurrent recording ceiling has been reached."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Maximum concurrent recordings reached ({limit})")


class NotFound(RecordingError):
    """No session with the given id."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Recording {session_id} not found")


class ServiceShuttingDown(RecordingError):
    """Cleanup has begun; no new recordings are accepted."""

    def __init__(self):
        super().__init__("Recording service is shutting down")


class StorageFailure(RecordingError):
    """A storage operation on a recording artifact failed."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Storage error on {self.path}: {reason}")


class ProcessLaunchFailure(RecordingError):
    """The encoder could not be started or died with an error.

    Never raised to the caller of ``start``; its message ends up in the
    session's ``error`` field.
    """
