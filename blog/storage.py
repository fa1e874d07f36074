"""Filesystem storage for profile images."""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Set

from .errors import StorageDeleteError, StorageWriteError

logger = logging.getLogger("blog.storage")

PUBLIC_PREFIX = "/uploads/profiles/"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
TOKEN_LENGTH = 8

_MAX_NAME_ATTEMPTS = 5


def get_file_extension(filename: Optional[str]) -> str:
    """Return the last ``.``-delimited suffix of *filename*, dot included."""

    if not filename:
        return ""
    index = filename.rfind(".")
    if index == -1:
        return ""
    return filename[index:]


class UniqueFilenameGenerator:
    """Build ``{timestamp}_{token}{ext}`` names that never repeat in-process.

    Tokens already handed out during the current second are remembered, so a
    burst of uploads inside one second still yields distinct names.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._current_stamp: Optional[str] = None
        self._issued: Set[str] = set()

    def __call__(self, extension: str = "") -> str:
        stamp = self._clock().strftime(TIMESTAMP_FORMAT)
        with self._lock:
            if stamp != self._current_stamp:
                self._current_stamp = stamp
                self._issued = set()
            token = self._new_token()
            while token in self._issued:
                token = self._new_token()
            self._issued.add(token)
        return f"{stamp}_{token}{extension}"

    @staticmethod
    def _new_token() -> str:
        return uuid.uuid4().hex[:TOKEN_LENGTH]


class ProfileImageStorage:
    """Write and remove profile images under the configured upload directory."""

    def __init__(
        self,
        upload_dir: Path,
        *,
        filename_generator: Optional[Callable[[str], str]] = None,
    ) -> None:
        self._upload_dir = Path(upload_dir)
        self._generate_name = filename_generator or UniqueFilenameGenerator()

    @property
    def upload_dir(self) -> Path:
        return self._upload_dir

    def ensure_directory(self) -> None:
        self._upload_dir.mkdir(parents=True, exist_ok=True)

    def store(self, content: bytes, original_filename: Optional[str]) -> str:
        """Persist *content* and return its public ``/uploads/profiles/...`` path."""

        extension = get_file_extension(original_filename)
        try:
            self.ensure_directory()
            for _ in range(_MAX_NAME_ATTEMPTS):
                name = self._generate_name(extension)
                target = self._upload_dir / name
                try:
                    with target.open("xb") as handle:
                        handle.write(content)
                except FileExistsError:
                    logger.debug("Generated image name %s already exists; retrying", name)
                    continue
                logger.info("Stored profile image %s (%d bytes)", name, len(content))
                return PUBLIC_PREFIX + name
        except OSError as exc:
            logger.error("Failed to write profile image into %s: %s", self._upload_dir, exc)
            raise StorageWriteError(
                "Unable to save the profile image",
                details={"filename": original_filename or ""},
            ) from exc

        raise StorageWriteError(
            "Unable to allocate a unique name for the profile image",
            details={"filename": original_filename or ""},
        )

    def delete(self, relative_path: Optional[str]) -> None:
        """Remove the file behind *relative_path*; a missing file is ignored."""

        if not relative_path:
            return

        target = self.resolve(relative_path)
        if target == self._upload_dir:
            return
        try:
            target.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("Failed to delete profile image %s: %s", target, exc)
            raise StorageDeleteError(
                "Unable to delete the profile image",
                details={"path": relative_path},
            ) from exc
        logger.info("Removed profile image %s", target.name)

    def resolve(self, relative_path: str) -> Path:
        filename = relative_path[relative_path.rfind("/") + 1 :]
        return self._upload_dir / filename


__all__ = [
    "PUBLIC_PREFIX",
    "ProfileImageStorage",
    "UniqueFilenameGenerator",
    "get_file_extension",
]
