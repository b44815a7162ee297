"""Compare a realm's sources with what was last loaded into the container."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from bifrost.core.walker import ErrorPolicy, ignore_predicate, walk


@dataclass
class RealmDiff:
    """Relative paths (as shown in the container) that differ from the sources."""
    added: list[Path] = field(default_factory=list)      # In sources, never loaded
    modified: list[Path] = field(default_factory=list)   # Changed since loading
    missing: list[Path] = field(default_factory=list)    # Loaded, since deleted

    @property
    def clean(self) -> bool:
        return not (self.added or self.modified or self.missing)

    def render(self) -> str:
        if self.clean:
            return "no changes since the last load\n"
        lines = []
        for label, paths in (("added", self.added), ("modified", self.modified), ("missing", self.missing)):
            for path in paths:
                lines.append(f"{label:<9} {path.as_posix()}")
        return "\n".join(lines) + "\n"


def _changed(source: Path, mirror: Path) -> bool:
    src, dst = os.stat(source), os.stat(mirror)
    return src.st_size != dst.st_size or src.st_mtime > dst.st_mtime


def diff_realm(cwd: Path, target: Path, ignore: list[str]) -> RealmDiff:
    """Diff the sources under ``cwd`` against the mirror at ``target``.

    A realm is mirrored either whole (``target/<cwd name>/...``) or as a
    set of top-level entries (``target/<entry>/...``); the layout is read
    back from what is present in ``target``.
    """
    prune = ignore_predicate(ignore)
    whole = (target / cwd.name).is_dir() and not (cwd / cwd.name).exists()
    base = cwd.parent if whole else cwd

    mirrored = walk(target, lambda name: False, on_error=ErrorPolicy.SKIP)
    mirrored_rel = {f.relative_to(target) for f in mirrored.files}

    sources = walk(cwd, prune, on_error=ErrorPolicy.SKIP)
    source_rel = {f.relative_to(base) for f in sources.files}
    if not whole:
        loaded_tops = {p.parts[0] for p in mirrored_rel}
        source_rel = {p for p in source_rel if p.parts[0] in loaded_tops}

    result = RealmDiff()
    result.added = sorted(source_rel - mirrored_rel)
    result.missing = sorted(mirrored_rel - source_rel)
    for rel in sorted(source_rel & mirrored_rel):
        if _changed(base / rel, target / rel):
            result.modified.append(rel)
    return result
