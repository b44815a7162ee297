"""Realm description assembled from the command line and the manifest."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from bifrost.core.config import RealmConfig
from bifrost.core.errors import IOFailureError, NoContentError
from bifrost.core.manifest import Manifest
from bifrost.core.path_guard import CONTAINER, DOT_BIFROST
from bifrost.core.walker import WorkingDir

logger = logging.getLogger(__name__)


class Mode(Enum):
    """How a realm's contents are (re)loaded."""
    NORMAL = "normal"        # Load once, on request
    AUTO = "auto"            # Reload when sources change
    MODIFIED = "modified"    # Reload only changed files

    @classmethod
    def from_flags(cls, auto: bool = False, modified: bool = False) -> Mode:
        if auto and modified:
            raise ValueError("--auto and --modified are mutually exclusive")
        if auto:
            return cls.AUTO
        if modified:
            return cls.MODIFIED
        return cls.NORMAL


@dataclass
class Realm:
    """A named project unit, created fresh for every invocation."""
    name: str
    home: Path
    cwd: Path
    manifest: Manifest = field(default_factory=Manifest)
    mode: Mode = Mode.NORMAL
    contents: list[WorkingDir] = field(default_factory=list)

    @classmethod
    def from_config(
        cls,
        config: RealmConfig,
        manifest: Manifest,
        mode: Mode = Mode.NORMAL,
        contents: Optional[list[str]] = None,
    ) -> Realm:
        """Build a realm. ``contents`` is only given for ``load``.

        An empty ``contents`` list means the whole cwd is loaded; a
        non-empty list that names nothing loadable raises NoContentError.
        """
        realm = cls(
            name=manifest.realm_name(config.cwd),
            home=config.home,
            cwd=config.cwd,
            manifest=manifest,
            mode=mode,
        )
        if contents is not None:
            realm.contents = realm.working_dirs(contents)
        return realm

    def working_dirs(self, contents: list[str]) -> list[WorkingDir]:
        ignore = frozenset(self.manifest.ignore_list())
        if not contents:
            return [WorkingDir(root=self.cwd, ignore_names=ignore)]

        paths = resolve_contents(self.home, self.cwd, contents)
        if not paths:
            raise NoContentError(
                "contents were passed but none of them are entries of the "
                f"current working directory ({self.cwd})"
            )
        return [WorkingDir(root=p, ignore_names=ignore) for p in paths]


def strip_trailing_slash(name: str) -> str:
    if len(name) > 1 and name.endswith(("/", "\\")):
        return name[:-1]
    return name


def _entry_names(cwd: Path) -> set[str]:
    try:
        return set(os.listdir(cwd))
    except OSError as e:
        raise IOFailureError(f"cannot list {cwd}: {e.strerror or e}", path=cwd) from e


def is_loadable(home: Path, cwd: Path, name: str, entries: Optional[set[str]] = None) -> bool:
    """A name is loadable if it is a direct entry of ``cwd``.

    The home directory and anything mentioning the bifrost directories
    are never loadable.
    """
    if Path(name) == home:
        return False
    if DOT_BIFROST in name or CONTAINER in name:
        return False
    if entries is None:
        entries = _entry_names(cwd)
    return name in entries


def resolve_contents(home: Path, cwd: Path, contents: list[str]) -> list[Path]:
    """Absolute paths for the loadable entries named in ``contents``."""
    entries = _entry_names(cwd)
    paths: list[Path] = []
    for raw in contents:
        name = strip_trailing_slash(raw)
        if is_loadable(home, cwd, name, entries):
            path = cwd / name
            if path not in paths:
                paths.append(path)
        else:
            logger.warning(f"Ignoring '{raw}': not an entry of {cwd}")
    return paths
