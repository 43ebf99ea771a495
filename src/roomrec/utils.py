"""Utility functions for roomrec."""
import logging
import os
import platform
import re
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Union

import psutil

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r'[/\\<>:"|?*\x00-\x1f\x7f]')


def safe_filename(name: str, max_length: int = 100) -> str:
    """Make a string safe to embed in a filename.

    Path separators, Windows reserved characters and control characters are
    replaced with underscores and the result is truncated to ``max_length``.

    Example:
        >>> safe_filename("room: 101/a")
        'room_ 101_a'
    """
    return _UNSAFE_CHARS.sub("_", name)[:max_length]


def file_timestamp(moment: datetime) -> str:
    """ISO-8601 timestamp with ``:`` and ``.`` made filename friendly."""
    return re.sub(r"[:.]", "-", moment.isoformat())


def recording_output_path(base_dir: Union[str, Path], room_id: str, started: datetime) -> Path:
    """Output file for a recording of ``room_id`` started at ``started``."""
    filename = f"recording_{safe_filename(room_id)}_{file_timestamp(started)}.mp4"
    return Path(base_dir) / filename


def resource_snapshot(disk_path: Union[str, Path, None] = None) -> Dict[str, Any]:
    """Collect memory, cpu and uptime figures for this process.

    Args:
        disk_path: When given, include disk usage of the filesystem holding it.
    """
    proc = psutil.Process(os.getpid())
    with proc.oneshot():
        memory = proc.memory_info()
        snapshot: Dict[str, Any] = {
            "memory": {"rss": memory.rss, "vms": memory.vms},
            "cpu_percent": proc.cpu_percent(interval=None),
            "threads": proc.num_threads(),
            "uptime": time.time() - proc.create_time(),
        }

    if disk_path is not None:
        try:
            usage = psutil.disk_usage(str(disk_path))
        except OSError as e:
            logger.warning(f"Could not read disk usage for {disk_path}: {e}")
        else:
            snapshot["disk"] = {
                "total": usage.total,
                "used": usage.used,
                "free": usage.free,
                "percent": usage.percent,
            }

    return snapshot


def runtime_info() -> Dict[str, str]:
    """Interpreter and platform details for detailed health checks."""
    return {
        "version": sys.version.split()[0],
        "platform": sys.platform,
        "arch": platform.machine(),
    }
