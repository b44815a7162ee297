"""Directory traversal for realm contents.

The walk is breadth-first, so the directory sequence it produces is
already in parent-before-child order and can be replayed directly when
the tree is recreated inside the container.
"""

from __future__ import annotations

import logging
import os
import stat
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Optional

from bifrost.core.errors import IOFailureError

logger = logging.getLogger(__name__)

PrunePredicate = Callable[[str], bool]


class ErrorPolicy(Enum):
    """What a walk does when a single entry cannot be inspected."""
    FAIL = "fail"    # Raise IOFailureError on the first bad entry
    SKIP = "skip"    # Record the entry in WorkingDir.skipped and continue


@dataclass(frozen=True)
class WalkError:
    """An entry the walk could not stat or list."""
    path: Path
    error: OSError

    def __str__(self) -> str:
        return f"{self.path}: {self.error.strerror or self.error}"


@dataclass
class WorkingDir:
    """One traversal root and everything a walk discovered under it."""

    root: Path
    ignore_names: frozenset[str] = field(default_factory=frozenset)
    directories: list[tuple[Path, int]] = field(default_factory=list)
    files: list[Path] = field(default_factory=list)
    total_bytes: int = 0
    skipped: list[WalkError] = field(default_factory=list)
    walked: bool = False

    def __post_init__(self) -> None:
        self.root = Path(self.root)
        self.ignore_names = frozenset(self.ignore_names)

    @property
    def parent(self) -> Optional[Path]:
        parent = self.root.parent
        return None if parent == self.root else parent

    def walk(self, on_error: ErrorPolicy = ErrorPolicy.FAIL) -> WorkingDir:
        """Populate this WorkingDir from disk. May only be called once."""
        if self.walked:
            raise RuntimeError(f"WorkingDir {self.root} has already been walked")
        result = walk(self.root, ignore_predicate(self.ignore_names), on_error=on_error)
        self.directories = result.directories
        self.files = result.files
        self.total_bytes = result.total_bytes
        self.skipped = result.skipped
        self.walked = True
        return self


def ignore_predicate(ignore_names: Iterable[str]) -> PrunePredicate:
    """Build a predicate pruning any name that starts with an ignored name.

    Matching is a literal prefix test: ignoring ``target`` also prunes
    ``targetdir`` and ``target.txt``.
    """
    prefixes = tuple(n for n in ignore_names if n)

    def should_prune(name: str) -> bool:
        return bool(prefixes) and name.startswith(prefixes)

    return should_prune


def _handle(err: WalkError, on_error: ErrorPolicy, skipped: list[WalkError]) -> None:
    if on_error is ErrorPolicy.FAIL:
        raise IOFailureError(f"cannot read {err}", path=err.path) from err.error
    logger.warning(f"Skipping unreadable entry {err}")
    skipped.append(err)


def walk(
    root: Path | str,
    should_prune: PrunePredicate,
    on_error: ErrorPolicy = ErrorPolicy.FAIL,
) -> WorkingDir:
    """Walk ``root`` and return a populated :class:`WorkingDir`.

    Args:
        root: Directory or file to walk.
        should_prune: Called with each entry's name (the root included);
            a ``True`` result drops the entry and, for directories,
            everything beneath it.
        on_error: Whether an unreadable entry aborts the walk or is skipped.

    Returns:
        A WorkingDir whose ``total_bytes`` is the sum of the sizes of its
        ``files``. Skipped entries are listed in ``skipped`` and are not
        counted.
    """
    root = Path(root)
    wd = WorkingDir(root=root)
    wd.walked = True

    try:
        root_stat = os.stat(root)
    except OSError as e:
        raise IOFailureError(f"cannot read {root}: {e.strerror or e}", path=root) from e

    if should_prune(root.name):
        logger.debug(f"Root {root} matches the ignore list, nothing to walk")
        return wd

    if not stat.S_ISDIR(root_stat.st_mode):
        if stat.S_ISREG(root_stat.st_mode):
            wd.files.append(root)
            wd.total_bytes += root_stat.st_size
        return wd

    queue: deque[tuple[Path, int]] = deque([(root, 0)])
    while queue:
        directory, depth = queue.popleft()
        wd.directories.append((directory, depth))

        # Linked directories are recreated but not followed.
        if depth > 0 and directory.is_symlink():
            continue

        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            _handle(WalkError(directory, e), on_error, wd.skipped)
            continue

        for entry in entries:
            if should_prune(entry.name):
                continue
            path = Path(entry.path)
            try:
                st = entry.stat()
            except OSError as e:
                _handle(WalkError(path, e), on_error, wd.skipped)
                continue

            if stat.S_ISDIR(st.st_mode):
                queue.append((path, depth + 1))
            elif stat.S_ISREG(st.st_mode):
                wd.files.append(path)
                wd.total_bytes += st.st_size

    logger.debug(
        f"Walked {root}: {len(wd.directories)} dirs, {len(wd.files)} files, "
        f"{wd.total_bytes} bytes"
    )
    return wd
