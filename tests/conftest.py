"""Shared test fixtures."""
from datetime import datetime, timedelta, timezone

import pytest

from roomrec.config import Config
from roomrec.manager import RecordingManager


class FakeHandle:
    """Stand-in for EncoderHandle that never touches a real process."""

    def __init__(self, session_id: str, pid: int):
        self.session_id = session_id
        self.pid = pid
        self.exited = False
        self.terminated = False
        self.signals = []


class FakeSupervisor:
    """Records launches and lets tests fire exit/error callbacks by hand."""

    def __init__(self):
        self.handles = {}
        self.callbacks = {}
        self.killed = []
        self.launch_error = None
        self._next_pid = 1000

    def launch(self, session_id, output_path, on_exit, on_error):
        self.callbacks[session_id] = (on_exit, on_error)
        if self.launch_error is not None:
            on_error(session_id, self.launch_error)
            return None
        self._next_pid += 1
        handle = FakeHandle(session_id, self._next_pid)
        self.handles[session_id] = handle
        return handle

    def terminate(self, handle, sig=None):
        if handle is None or handle.terminated or handle.exited:
            return False
        handle.signals.append(sig)
        handle.terminated = True
        return True

    def kill(self, handle, grace=1.0):
        if handle is None or handle.exited:
            return False
        self.killed.append(handle.session_id)
        handle.exited = True
        return True

    def exit(self, session_id, returncode=0):
        """Simulate the encoder exiting."""
        handle = self.handles.get(session_id)
        if handle is not None:
            handle.exited = True
        on_exit, _ = self.callbacks[session_id]
        on_exit(session_id, returncode == 0, returncode)

    def error(self, session_id, message):
        on_exit, on_error = self.callbacks[session_id]
        on_error(session_id, message)


class FakeClock:
    """Deterministic clock advanced by tests."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds: float):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def config(tmp_path):
    """Config writing into a temporary directory with a ceiling of 5."""
    return Config(
        recording={"max_concurrent_recordings": 5, "ffmpeg_path": "ffmpeg"},
        storage={
            "recordings_path": str(tmp_path / "recordings"),
            "temp_path": str(tmp_path / "temp"),
        },
    )


@pytest.fixture
def supervisor():
    return FakeSupervisor()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def manager(config, supervisor, clock):
    return RecordingManager(config, supervisor=supervisor, clock=clock)


@pytest.fixture
def options():
    from roomrec.models import RecordingOptions
    return RecordingOptions(room_id="r1", requested_by="u1")


@pytest.fixture
def reset_managed_processes():
    """Reset the global managed processes state around each test."""
    import roomrec.proc.bg as bg_module

    original = bg_module._managed_processes.copy()
    bg_module._managed_processes.clear()

    yield

    bg_module._managed_processes.clear()
    bg_module._managed_processes.update(original)
