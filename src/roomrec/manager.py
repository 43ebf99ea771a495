"""Recording session lifecycle."""
import logging
import signal
import threading
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional

from .config import Config
from .errors import CapacityExceeded, NotFound, ServiceShuttingDown
from .models.options import RecordingOptions
from .models.results import StartResult, Stats, StopResult
from .models.session import Session, SessionStatus
from .registry import SessionRegistry
from .storage import RecordingStorage
from .supervisor import EncoderSupervisor
from .utils import recording_output_path, resource_snapshot

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecordingManager:
    """Starts, stops and tracks recordings, one encoder process per session.

    All registry mutation, the capacity check and the encoder callbacks go
    through a single lock, so the ceiling holds under concurrent starts and
    an explicit stop is never overwritten by a late exit report.
    """

    def __init__(self, config: Config,
                 supervisor: Optional[EncoderSupervisor] = None,
                 storage: Optional[RecordingStorage] = None,
                 clock: Clock = utcnow):
        self.max_concurrent = config.recording.max_concurrent_recordings
        self.supervisor = supervisor or EncoderSupervisor(config.recording.ffmpeg_path)
        self.storage = storage or RecordingStorage()
        self.clock = clock
        self.registry = SessionRegistry()

        self._lock = threading.RLock()
        self._shutting_down = False

        self.recordings_dir = self.storage.ensure_directory(config.storage.recordings_path)
        self.temp_dir = self.storage.ensure_directory(config.storage.temp_path)

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    def active_count(self) -> int:
        with self._lock:
            return sum(1 for s in self.registry.all() if s.status == SessionStatus.RECORDING)

    def start(self, options: RecordingOptions) -> StartResult:
        """Admit a new recording and launch its encoder.

        Raises:
            ServiceShuttingDown: cleanup has already begun.
            CapacityExceeded: the concurrent recording ceiling is reached.
        """
        with self._lock:
            if self._shutting_down:
                raise ServiceShuttingDown()
            if self.active_count() >= self.max_concurrent:
                logger.warning(f"Refusing recording for room {options.room_id}: "
                               f"{self.max_concurrent} already active")
                raise CapacityExceeded(self.max_concurrent)

            session_id = uuid.uuid4().hex
            now = self.clock()
            session = Session(
                id=session_id,
                room_id=options.room_id,
                room_name=options.room_name,
                requested_by=options.requested_by,
                status=SessionStatus.RECORDING,
                start_time=now,
                output_path=str(recording_output_path(self.recordings_dir, options.room_id, now)),
                options=options,
            )
            session.use_clock(self.clock)
            self.registry.put(session_id, session)
            logger.info(f"Starting recording [id:{session_id}, room:{options.room_id}]")

            handle = self.supervisor.launch(
                session_id, session.output_path,
                on_exit=self._on_encoder_exit,
                on_error=self._on_encoder_error,
            )
            if handle is not None and session.status == SessionStatus.RECORDING:
                session.attach_process(handle)

        return StartResult(session_id=session_id)

    def stop(self, session_id: str) -> StopResult:
        """Stop a recording.

        The encoder, if still live, gets SIGINT and is not waited for. The
        session always ends up ``stopped`` with ``end_time`` set to now, so
        an explicit stop wins over any exit report.

        Raises:
            NotFound: no such session.
        """
        with self._lock:
            session = self._require(session_id)

            if session.ended:
                logger.debug(f"Recording {session_id} was already {session.status.value}")
            self.supervisor.terminate(session.process, signal.SIGINT)
            session.finish(SessionStatus.STOPPED, self.clock())
            logger.info(f"Recording stopped [id:{session_id}]")

            duration = (session.end_time - session.start_time).total_seconds()
            return StopResult(session_id=session_id, status=session.status, duration=duration)

    def get(self, session_id: str) -> Session:
        with self._lock:
            return self._require(session_id).model_copy()

    def list(self) -> List[Session]:
        with self._lock:
            return self.registry.all()

    def delete(self, session_id: str) -> None:
        """Forget a session and remove its output file.

        A still-running encoder is sent SIGTERM first, and SIGKILL later
        from the supervisor if it hangs on; neither is waited for here.

        Raises:
            NotFound: no such session.
            StorageFailure: the output file could not be removed; the
                session is kept.
        """
        with self._lock:
            session = self._require(session_id)

            if session.process is not None:
                logger.warning(f"Deleting recording {session_id} while its encoder is running")
                self.supervisor.kill(session.process)
                session.attach_process(None)

            if session.output_path and self.storage.path_exists(session.output_path):
                self.storage.remove(session.output_path)

            self.registry.remove(session_id)
            logger.info(f"Recording deleted [id:{session_id}]")

    def stats(self) -> Stats:
        with self._lock:
            sessions = self.registry.all()

        def count(status: SessionStatus) -> int:
            return sum(1 for s in sessions if s.status == status)

        return Stats(
            active_recordings=count(SessionStatus.RECORDING),
            total_recordings=len(sessions),
            completed_recordings=count(SessionStatus.COMPLETED),
            failed_recordings=count(SessionStatus.FAILED),
            system_resources=resource_snapshot(self.recordings_dir),
        )

    def cleanup(self) -> None:
        """Stop every active recording and empty the registry.

        Meant to run once at shutdown. Starts attempted after this begins
        are refused.
        """
        logger.info("Cleaning up recording service...")
        with self._lock:
            self._shutting_down = True
            for session in self.registry.all():
                if session.status != SessionStatus.RECORDING:
                    continue
                try:
                    self.stop(session.id)
                except Exception:
                    logger.exception(f"Failed to stop recording {session.id}")
            self.registry.clear()

    def _require(self, session_id: str) -> Session:
        session = self.registry.get(session_id)
        if session is None:
            raise NotFound(session_id)
        return session

    def _on_encoder_exit(self, session_id: str, success: bool, returncode: Optional[int]) -> None:
        with self._lock:
            session = self.registry.get(session_id)
            if session is None or session.status != SessionStatus.RECORDING:
                return
            if success:
                session.finish(SessionStatus.COMPLETED, self.clock())
                logger.info(f"Recording completed [id:{session_id}]")
            else:
                session.finish(SessionStatus.FAILED, self.clock(),
                               error=f"Encoder exited with code {returncode}")
                logger.error(f"Recording failed [id:{session_id}] with code {returncode}")

    def _on_encoder_error(self, session_id: str, message: str) -> None:
        with self._lock:
            session = self.registry.get(session_id)
            if session is None or session.status != SessionStatus.RECORDING:
                return
            session.finish(SessionStatus.FAILED, self.clock(), error=message)
            logger.error(f"Encoder error [id:{session_id}]: {message}")
