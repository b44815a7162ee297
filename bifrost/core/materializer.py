"""Recreate a walked tree inside a realm's target path."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from bifrost.core.errors import IOFailureError, IncompleteLoadError
from bifrost.core.path_guard import TargetPath
from bifrost.core.walker import WorkingDir

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def _destination(parent: Path, source: Path, target: Path) -> Path:
    try:
        suffix = source.relative_to(parent)
    except ValueError as e:
        raise IOFailureError(
            f"cannot place {source}: it is not beneath {parent}", path=source
        ) from e
    return target / suffix


def _make_dir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise IOFailureError(f"cannot create directory {path}: {e.strerror or e}", path=path) from e


def copy_file(source: Path, destination: Path) -> int:
    """Copy ``source`` to ``destination`` and return the bytes written."""
    written = 0
    try:
        with open(source, "rb") as src, open(destination, "wb") as dst:
            while True:
                chunk = src.read(CHUNK_SIZE)
                if not chunk:
                    break
                dst.write(chunk)
                written += len(chunk)
        shutil.copymode(source, destination)
    except OSError as e:
        raise IOFailureError(f"cannot copy {source}: {e.strerror or e}", path=source) from e
    return written


def materialize(wd: WorkingDir, target: TargetPath | Path) -> int:
    """Copy a walked WorkingDir under ``target``.

    Directories are drained from ``wd.directories`` shallowest first, so
    each one is created after its parent. Files keep their path relative
    to the walked root's parent: loading ``/home/u/project/src`` into
    ``<container>/project`` produces ``<container>/project/src/...``.

    Returns:
        Number of bytes copied, always equal to ``wd.total_bytes``.

    Raises:
        IncompleteLoadError: if the copied byte count differs from the
            count recorded by the walk.
        IOFailureError: on any filesystem failure.
    """
    to = target.path if isinstance(target, TargetPath) else Path(target)
    parent = wd.parent if wd.parent is not None else wd.root

    directories, wd.directories = wd.directories, []
    if directories:
        (top, _), rest = directories[0], directories[1:]
        _make_dir(_destination(parent, top, to))
        for directory, depth in rest:
            destination = _destination(parent, directory, to)
            logger.debug(f"mkdir (depth {depth}) {destination}")
            _make_dir(destination)
    else:
        _make_dir(to)

    copied = 0
    for source in wd.files:
        copied += copy_file(source, _destination(parent, source, to))

    if copied != wd.total_bytes:
        raise IncompleteLoadError(expected=wd.total_bytes, copied=copied)

    logger.info(f"Materialized {wd.root} into {to} ({copied} bytes)")
    return copied


def remove_tree(path: Path) -> None:
    """Delete a realm directory tree."""
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        return
    except OSError as e:
        raise IOFailureError(f"cannot remove {path}: {e.strerror or e}", path=path) from e
    logger.info(f"Removed {path}")
