"""Per-realm advisory lock serializing concurrent bifrost invocations."""

from __future__ import annotations

import fcntl
import logging
import os
from pathlib import Path
from typing import IO, Optional

from bifrost.core.errors import IOFailureError, RealmLockedError
from bifrost.core.path_guard import bifrost_dir

logger = logging.getLogger(__name__)


class RealmLock:
    """Non-blocking ``flock`` on ``<home>/.bifrost/locks/<name>.lock``.

    The kernel drops the lock when the holding process exits, so a
    crashed invocation never leaves a realm locked.
    """

    def __init__(self, home: Path, name: str):
        self.name = name
        self.path = bifrost_dir(home) / "locks" / f"{name}.lock"
        self._handle: Optional[IO[str]] = None

    @property
    def held(self) -> bool:
        return self._handle is not None

    def acquire(self) -> RealmLock:
        if self._handle is not None:
            return self
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fh = self.path.open("a+", encoding="utf-8")
        except OSError as e:
            raise IOFailureError(f"cannot open lock {self.path}: {e.strerror or e}", path=self.path) from e
        try:
            fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as e:
            fh.close()
            raise RealmLockedError(self.name, self.path) from e
        fh.seek(0)
        fh.truncate()
        fh.write(f"{os.getpid()}\n")
        fh.flush()
        self._handle = fh
        logger.debug(f"Locked realm {self.name}")
        return self

    def release(self, remove: bool = False) -> None:
        """Drop the lock; with ``remove`` the lock file is deleted first."""
        fh, self._handle = self._handle, None
        if fh is None:
            return
        try:
            if remove:
                self.path.unlink(missing_ok=True)
            fcntl.flock(fh.fileno(), fcntl.LOCK_UN)
        finally:
            fh.close()
        logger.debug(f"Released realm {self.name}")

    def __enter__(self) -> RealmLock:
        return self.acquire()

    def __exit__(self, *exc) -> None:
        self.release()
