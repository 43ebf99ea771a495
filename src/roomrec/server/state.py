"""Global state for the roomrec server."""
import os
from pathlib import Path
from typing import Optional

from ..manager import RecordingManager

server_dir = Path(f"/tmp/roomrec-{os.getenv('USER', 'nobody')}")

_manager: Optional[RecordingManager] = None


def get_manager() -> RecordingManager:
    """FastAPI dependency returning the running manager."""
    if _manager is None:
        raise RuntimeError("Recording manager not initialized")
    return _manager


def set_manager(manager: Optional[RecordingManager]) -> None:
    global _manager
    _manager = manager


def current_manager() -> Optional[RecordingManager]:
    """The running manager, or None outside the server lifespan."""
    return _manager
