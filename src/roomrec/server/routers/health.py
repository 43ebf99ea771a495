"""Health check endpoints."""
import subprocess
import time
from datetime import datetime, timezone

import psutil
from fastapi import APIRouter

from ... import __version__
from ...config import get_config
from ...proc import bg, run
from ...utils import runtime_info

router = APIRouter()

SERVICE_NAME = "roomrec"


def _uptime() -> float:
    return time.time() - psutil.Process().create_time()


def _encoder_available(ffmpeg_path: str) -> bool:
    try:
        return run([ffmpeg_path, "-version"], timeout=5).returncode == 0
    except (OSError, ValueError, subprocess.SubprocessError):
        return False


@router.get("/")
async def health_check() -> dict:
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": _uptime(),
        "service": SERVICE_NAME,
        "version": __version__,
    }


@router.get("/detailed")
def detailed_health_check() -> dict:
    """Health plus memory, interpreter and encoder details."""
    memory = psutil.Process().memory_info()
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": _uptime(),
        "service": SERVICE_NAME,
        "version": __version__,
        "memory": {
            "rss": f"{round(memory.rss / 1024 / 1024)} MB",
            "vms": f"{round(memory.vms / 1024 / 1024)} MB",
        },
        "python": runtime_info(),
        "encoder": {
            "path": get_config().recording.ffmpeg_path,
            "available": _encoder_available(get_config().recording.ffmpeg_path),
            "processes": bg.managed_count(),
        },
    }
