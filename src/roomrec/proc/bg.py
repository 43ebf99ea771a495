"""Background process management.

Every process started through :func:`spawn` is tracked until it is released
or reaped, and any survivors are killed (with their descendants) when the
interpreter exits.
"""
import atexit
import logging
import os
import signal
import subprocess
import time
from typing import List, Set

logger = logging.getLogger(__name__)

_managed_processes: Set[int] = set()


def _get_children(pid: int) -> Set[int]:
    """Direct children of ``pid`` according to /proc."""
    children = set()
    try:
        entries = os.listdir('/proc')
    except OSError:
        return children

    for entry in entries:
        if not entry.isdigit():
            continue
        try:
            with open(f'/proc/{entry}/stat', 'r') as f:
                fields = f.read().rsplit(')', 1)[-1].split()
        except OSError:
            continue
        # After the command name: state, ppid, ...
        if len(fields) >= 2 and fields[1].isdigit() and int(fields[1]) == pid:
            children.add(int(entry))
    return children


def _get_descendants(pid: int) -> Set[int]:
    """``pid`` and everything below it."""
    tree = {pid}
    pending = [pid]
    while pending:
        current = pending.pop()
        for child in _get_children(current):
            if child not in tree:
                tree.add(child)
                pending.append(child)
    return tree


def _terminate_tree(pid: int, timeout: float = 1.0) -> bool:
    """SIGTERM a process tree, then SIGKILL whatever is left after ``timeout``."""
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return True
    except PermissionError:
        logger.warning(f"No permission to signal process {pid}")
        return False

    tree = _get_descendants(pid)
    logger.debug(f"Terminating process tree: {sorted(tree)}")

    for proc_pid in tree:
        try:
            os.kill(proc_pid, signal.SIGTERM)
        except (ProcessLookupError, PermissionError):
            continue

    deadline = time.monotonic() + timeout
    alive = set(tree)
    while alive:
        for proc_pid in list(alive):
            try:
                os.kill(proc_pid, 0)
            except ProcessLookupError:
                alive.discard(proc_pid)
            except PermissionError:
                pass
        if not alive or time.monotonic() >= deadline:
            break
        time.sleep(0.05)

    for proc_pid in alive:
        try:
            os.kill(proc_pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            continue

    if alive:
        logger.warning(f"Force killed processes: {sorted(alive)}")
    return True


def spawn(cmd: List[str], **kwargs) -> subprocess.Popen:
    """Start a tracked background process.

    stdin, stdout and stderr default to DEVNULL; pass them to override.
    """
    kwargs.setdefault('stdin', subprocess.DEVNULL)
    kwargs.setdefault('stdout', subprocess.DEVNULL)
    kwargs.setdefault('stderr', subprocess.DEVNULL)

    proc = subprocess.Popen(cmd, **kwargs)
    _managed_processes.add(proc.pid)
    logger.debug(f"Spawned background process {proc.pid}: {cmd[0]}")
    return proc


def release(pid: int) -> None:
    """Stop tracking a process that has already been waited for."""
    _managed_processes.discard(pid)


def signal_tree(pid: int, sig: int) -> bool:
    """Send ``sig`` to a tracked process and its descendants without waiting.

    Returns False for untracked pids, so a pid the kernel may have reused is
    never signalled.
    """
    if pid not in _managed_processes:
        return False

    sent = False
    for proc_pid in _get_descendants(pid):
        try:
            os.kill(proc_pid, sig)
            sent = True
        except (ProcessLookupError, PermissionError):
            continue
    return sent


def wait_all(timeout: float) -> int:
    """Wait up to ``timeout`` seconds for tracked processes to go away.

    Processes are forgotten once whoever waits on them releases them or
    once they no longer exist.

    Returns:
        How many are still tracked.
    """
    deadline = time.monotonic() + timeout
    while True:
        reap()
        if not _managed_processes or time.monotonic() >= deadline:
            break
        time.sleep(0.05)

    if _managed_processes:
        logger.warning(f"{len(_managed_processes)} background processes still running")
    return len(_managed_processes)


def reap() -> None:
    """Forget tracked processes that no longer exist."""
    for pid in list(_managed_processes):
        try:
            os.kill(pid, 0)
        except ProcessLookupError:
            _managed_processes.discard(pid)
        except PermissionError:
            pass


def managed_count() -> int:
    """Number of tracked processes still alive."""
    reap()
    return len(_managed_processes)


def _cleanup_on_exit() -> None:
    for pid in list(_managed_processes):
        _terminate_tree(pid, timeout=1.0)
    _managed_processes.clear()


atexit.register(_cleanup_on_exit)
