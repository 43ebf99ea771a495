"""Encoder process supervision.

One encoder process per recording session. The supervisor owns the process:
it spawns it, watches it from a daemon thread and reports the outcome
through the callbacks given at launch.
"""
import logging
import signal
import subprocess
import threading
from pathlib import Path
from typing import Callable, List, Optional, Union

from .errors import ProcessLaunchFailure
from .proc import bg

logger = logging.getLogger(__name__)

# (session_id, success, returncode)
ExitCallback = Callable[[str, bool, Optional[int]], None]
# (session_id, message)
ErrorCallback = Callable[[str, str], None]
CommandBuilder = Callable[[str], List[str]]


class EncoderHandle:
    """Reference to a running encoder, enough to signal it and nothing more."""

    def __init__(self, session_id: str, process: subprocess.Popen):
        self.session_id = session_id
        self._process = process
        self.terminated = False

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def returncode(self) -> Optional[int]:
        return self._process.poll()

    @property
    def exited(self) -> bool:
        return self.returncode is not None

    def send_signal(self, sig: int) -> None:
        self._process.send_signal(sig)

    def __repr__(self) -> str:
        return f"EncoderHandle(session={self.session_id}, pid={self.pid}, exited={self.exited})"


class EncoderSupervisor:
    """Launches and terminates encoder processes."""

    def __init__(self, ffmpeg_path: str = "ffmpeg", command_builder: Optional[CommandBuilder] = None):
        self.ffmpeg_path = ffmpeg_path
        self._command_builder = command_builder

    def build_command(self, output_path: Union[str, Path]) -> List[str]:
        """Encoder command line writing to ``output_path``."""
        output_path = str(output_path)
        if self._command_builder is not None:
            return self._command_builder(output_path)

        return [
            self.ffmpeg_path,
            "-f", "lavfi",
            "-i", "testsrc2=duration=10:size=1280x720:rate=30",
            "-f", "lavfi",
            "-i", "sine=frequency=1000:duration=10",
            "-c:v", "libx264",
            "-preset", "ultrafast",
            "-c:a", "aac",
            "-shortest",
            "-y",
            output_path,
        ]

    def launch(self, session_id: str, output_path: Union[str, Path],
               on_exit: ExitCallback, on_error: ErrorCallback) -> Optional[EncoderHandle]:
        """Start the encoder for a session without waiting for it.

        Returns:
            A handle for the running process, or None when it could not be
            spawned. In that case ``on_error`` has already been called.
        """
        cmd = self.build_command(output_path)
        logger.debug(f"Launching encoder for {session_id}: {cmd}")

        try:
            process = bg.spawn(cmd, start_new_session=True)
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            failure = ProcessLaunchFailure(f"Failed to launch {cmd[0]}: {e}")
            logger.error(f"Encoder launch failed [id:{session_id}]: {failure}")
            on_error(session_id, str(failure))
            return None

        handle = EncoderHandle(session_id, process)
        watcher = threading.Thread(
            target=self._watch,
            args=(handle, process, on_exit, on_error),
            name=f"encoder-{session_id[:8]}",
            daemon=True,
        )
        watcher.start()
        logger.info(f"Encoder started [id:{session_id}, pid:{process.pid}]")
        return handle

    def _watch(self, handle: EncoderHandle, process: subprocess.Popen,
               on_exit: ExitCallback, on_error: ErrorCallback) -> None:
        try:
            returncode = process.wait()
        except Exception as e:
            logger.exception(f"Lost track of encoder [id:{handle.session_id}]")
            on_error(handle.session_id, str(e))
            return
        finally:
            bg.release(process.pid)

        success = returncode == 0
        if success:
            logger.info(f"Encoder finished [id:{handle.session_id}]")
        else:
            logger.warning(f"Encoder exited [id:{handle.session_id}] with code {returncode}")
        on_exit(handle.session_id, success, returncode)

    def terminate(self, handle: Optional[EncoderHandle], sig: int = signal.SIGINT) -> bool:
        """Signal an encoder once.

        Returns:
            True if a signal was sent. Missing, exited and already
            terminated handles are left alone.
        """
        if handle is None or handle.terminated or handle.exited:
            return False

        try:
            handle.send_signal(sig)
        except ProcessLookupError:
            return False

        handle.terminated = True
        logger.debug(f"Sent signal {sig} to encoder [id:{handle.session_id}, pid:{handle.pid}]")
        return True

    def kill(self, handle: Optional[EncoderHandle], grace: float = 1.0) -> bool:
        """SIGTERM an encoder and anything it spawned, without waiting.

        Whatever is still running ``grace`` seconds later gets SIGKILL from
        a timer thread.
        """
        if handle is None or handle.exited:
            return False
        handle.terminated = True
        if not bg.signal_tree(handle.pid, signal.SIGTERM):
            return False

        timer = threading.Timer(grace, self._force_kill, args=(handle,))
        timer.name = f"encoder-kill-{handle.session_id[:8]}"
        timer.daemon = True
        timer.start()
        logger.debug(f"Sent SIGTERM to encoder tree [id:{handle.session_id}, pid:{handle.pid}]")
        return True

    def _force_kill(self, handle: EncoderHandle) -> None:
        if handle.exited:
            return
        if bg.signal_tree(handle.pid, signal.SIGKILL):
            logger.warning(f"Force killed encoder [id:{handle.session_id}, pid:{handle.pid}]")
