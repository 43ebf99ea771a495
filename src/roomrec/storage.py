"""Filesystem operations on recording artifacts."""
import logging
import shutil
from pathlib import Path
from typing import Union

from .errors import StorageFailure

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class RecordingStorage:
    """Thin wrapper over the filesystem that reports errors as StorageFailure."""

    def ensure_directory(self, path: PathLike) -> Path:
        directory = Path(path).expanduser()
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageFailure(directory, str(e)) from e
        return directory

    def path_exists(self, path: PathLike) -> bool:
        return Path(path).expanduser().exists()

    def remove(self, path: PathLike) -> None:
        """Remove a file or a directory tree. Missing paths are ignored."""
        target = Path(path).expanduser()
        try:
            if target.is_dir() and not target.is_symlink():
                shutil.rmtree(target)
            else:
                target.unlink(missing_ok=True)
        except OSError as e:
            raise StorageFailure(target, str(e)) from e
        logger.debug(f"Removed {target}")
