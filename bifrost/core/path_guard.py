"""Construction of the only paths Bifrost operations may write to or delete.

Every realm lives at ``<home>/.bifrost/container/bifrost/<name>``. A
``TargetPath`` can only be obtained through :func:`for_create` or
:func:`for_existing`, so an operation can never be pointed at an
arbitrary directory such as the user's home.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from bifrost.core.errors import AlreadyExistsError, InvalidNameError, NotFoundError

DOT_BIFROST = ".bifrost"
CONTAINER = "container"
BIFROST_CONTAINER = "bifrost"
MANIFEST_NAME = "Bifrost.toml"

BLACKLISTED_NAMES: frozenset[str] = frozenset([
    DOT_BIFROST,
    CONTAINER,
    BIFROST_CONTAINER,
    ".bifrost_config",
    MANIFEST_NAME,
    "tmp",
])


@dataclass(frozen=True)
class TargetPath:
    """A validated realm location inside the container root."""
    name: str
    path: Path

    def __str__(self) -> str:
        return str(self.path)


def bifrost_dir(home: Path) -> Path:
    """Return ``<home>/.bifrost``."""
    return Path(home) / DOT_BIFROST


def container_root(home: Path) -> Path:
    """Return the directory every realm is materialized under."""
    return bifrost_dir(home) / CONTAINER / BIFROST_CONTAINER


def is_blacklisted(name: str) -> bool:
    if name in BLACKLISTED_NAMES or name.startswith("."):
        return True
    if "\x00" in name:
        return True
    # Separators would let the target escape the container root.
    if os.sep in name or "/" in name or (os.altsep and os.altsep in name):
        return True
    return False


def check_name(name: Optional[str]) -> str:
    """Return ``name`` if it may be used as a realm name, else raise."""
    if name is None or not name.strip():
        raise InvalidNameError(name)
    if is_blacklisted(name):
        raise InvalidNameError(name)
    return name


def _candidate(home: Path, name: Optional[str]) -> TargetPath:
    checked = check_name(name)
    return TargetPath(name=checked, path=container_root(home) / checked)


def _exists(path: Path) -> bool:
    try:
        os.lstat(path)
    except OSError:
        return False
    return True


def for_create(home: Path, name: Optional[str]) -> TargetPath:
    """Target for ``load``: the path must not exist yet."""
    target = _candidate(home, name)
    if _exists(target.path):
        raise AlreadyExistsError(target.path)
    return target


def for_existing(home: Path, name: Optional[str]) -> TargetPath:
    """Target for ``show``, ``unload`` and ``run``: the path must exist."""
    target = _candidate(home, name)
    if not _exists(target.path):
        raise NotFoundError(target.path)
    return target
