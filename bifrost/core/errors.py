"""Error taxonomy for Bifrost operations."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional


class ErrorCategory(Enum):
    """Categories of failures surfaced by Bifrost operations."""
    INVALID_NAME = "invalid_name"          # Realm name blank or blacklisted
    ALREADY_EXISTS = "already_exists"      # Load target already present
    NOT_FOUND = "not_found"                # Show/unload/run target absent
    IO_FAILURE = "io_failure"              # stat/mkdir/copy/delete failed
    INCOMPLETE_LOAD = "incomplete_load"    # Copied bytes != walked bytes
    PROCESS_FAILURE = "process_failure"    # External process failed
    INVALID_REALM = "invalid_realm"        # cwd cannot host a realm
    NO_CONTENT = "no_content"              # Nothing loadable was named
    MANIFEST = "manifest"                  # Bifrost.toml unreadable/incomplete
    LOCKED = "locked"                      # Another invocation holds the realm
    LIFECYCLE = "lifecycle"                # Operation stages misused


class BifrostError(Exception):
    """Base exception for Bifrost-specific errors."""

    category: ErrorCategory = ErrorCategory.IO_FAILURE

    def __init__(self, message: str, category: Optional[ErrorCategory] = None):
        super().__init__(message)
        self.message = message
        if category is not None:
            self.category = category


class InvalidNameError(BifrostError):
    """Realm name is empty or blacklisted."""

    category = ErrorCategory.INVALID_NAME

    def __init__(self, name: Optional[str]):
        self.name = name
        if not name or not name.strip():
            message = "realm name cannot be empty"
        else:
            message = f"realm name '{name}' is not allowed"
        super().__init__(message)


class AlreadyExistsError(BifrostError):
    """The proposed load target already exists."""

    category = ErrorCategory.ALREADY_EXISTS

    def __init__(self, path: Path):
        self.path = path
        super().__init__(
            f"the proposed path already exists: {path}\nhint: did you mean to unload first?"
        )


class NotFoundError(BifrostError):
    """The realm has not been loaded into the container."""

    category = ErrorCategory.NOT_FOUND

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"no loaded realm found at {path}\nhint: try `bifrost load`")


class IOFailureError(BifrostError):
    """A filesystem call failed."""

    category = ErrorCategory.IO_FAILURE

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        super().__init__(message)


class IncompleteLoadError(BifrostError):
    """Fewer (or more) bytes were copied than the walk recorded."""

    category = ErrorCategory.INCOMPLETE_LOAD

    def __init__(self, expected: int, copied: int):
        self.expected = expected
        self.copied = copied
        super().__init__(f"could not load all contents: copied {copied} of {expected} bytes")


class ProcessFailureError(BifrostError):
    """An external process failed to spawn or exited non-zero."""

    category = ErrorCategory.PROCESS_FAILURE

    def __init__(
        self,
        message: str,
        returncode: Optional[int] = None,
        stderr: bytes = b"",
    ):
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class InvalidRealmError(BifrostError):
    category = ErrorCategory.INVALID_REALM


class NoContentError(BifrostError):
    category = ErrorCategory.NO_CONTENT


class ManifestError(BifrostError):
    category = ErrorCategory.MANIFEST


class RealmLockedError(BifrostError):
    """Another bifrost process is operating on the same realm."""

    category = ErrorCategory.LOCKED

    def __init__(self, name: str, lock_path: Path):
        self.name = name
        self.lock_path = lock_path
        super().__init__(f"realm '{name}' is in use by another bifrost process ({lock_path})")


class LifecycleError(BifrostError):
    """An operation stage was advanced more than once."""

    category = ErrorCategory.LIFECYCLE
