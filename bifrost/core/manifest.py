"""Bifrost.toml manifest: workspace name, ignore list, container and commands."""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, ValidationError

from bifrost.core.errors import ManifestError
from bifrost.core.path_guard import MANIFEST_NAME

logger = logging.getLogger(__name__)

# Values written by `bifrost init` that stand for "not configured yet".
PLACEHOLDER_NAMES = frozenset(["name of workspace", "workspace name", "name of current workspace"])
PLACEHOLDER_COMMANDS = frozenset(["command string(s)", "default-arg"])

DEFAULT_IGNORE = ["target", ".git", ".gitignore"]


class WorkspaceSection(BaseModel):
    name: Optional[str] = "name of workspace"
    ignore: list[str] = Field(default_factory=lambda: list(DEFAULT_IGNORE))


class ContainerSection(BaseModel):
    name: str = "docker"


class CommandSection(BaseModel):
    cmds: list[str] = Field(
        default_factory=lambda: ["command string(s)"],
        validation_alias=AliasChoices("cmds", "cmd"),
    )


class Manifest(BaseModel):
    """Parsed contents of a realm's Bifrost.toml."""
    workspace: WorkspaceSection = Field(default_factory=WorkspaceSection)
    container: ContainerSection = Field(default_factory=ContainerSection)
    command: CommandSection = Field(default_factory=CommandSection)

    @classmethod
    def from_toml(cls, text: str, source: str = MANIFEST_NAME) -> Manifest:
        try:
            data = tomllib.loads(text)
            return cls.model_validate(data)
        except tomllib.TOMLDecodeError as e:
            raise ManifestError(f"{source} is not valid TOML: {e}") from e
        except ValidationError as e:
            raise ManifestError(f"{source} is invalid: {e}") from e

    @classmethod
    def from_file(cls, path: Path) -> Manifest:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ManifestError(f"could not read {path}: {e.strerror or e}") from e
        return cls.from_toml(text, source=str(path))

    @classmethod
    def for_realm(cls, realm_dir: Path) -> Manifest:
        """Load ``<realm_dir>/Bifrost.toml``, or defaults when there is none."""
        path = realm_dir / MANIFEST_NAME
        if not path.exists():
            logger.info(f"No {MANIFEST_NAME} in {realm_dir}, using the default manifest")
            return cls()
        return cls.from_file(path)

    def realm_name(self, cwd: Path) -> str:
        """The configured workspace name, or the cwd's directory name."""
        name = self.workspace.name
        if name is None or not name.strip() or name in PLACEHOLDER_NAMES:
            return cwd.name
        return name

    def ignore_list(self) -> list[str]:
        return list(self.workspace.ignore)

    def commands(self) -> list[str]:
        """Commands to run in the container, placeholders removed."""
        return [
            c for c in self.command.cmds
            if c.strip() and c not in PLACEHOLDER_COMMANDS
        ]

    def with_overrides(
        self,
        workspace: Optional[str] = None,
        ignore: Optional[list[str]] = None,
        container: Optional[str] = None,
        commands: Optional[list[str]] = None,
    ) -> Manifest:
        """Return a copy with command-line values replacing manifest values."""
        updated = self.model_copy(deep=True)
        if workspace:
            updated.workspace.name = workspace
        if ignore:
            updated.workspace.ignore = list(ignore)
        if container:
            updated.container.name = container
        if commands:
            updated.command.cmds = list(commands)
        return updated

    def to_toml(self) -> str:
        def _str(value: str) -> str:
            # JSON leaves DEL unescaped; TOML basic strings do not allow it.
            return json.dumps(value, ensure_ascii=False).replace("\x7f", "\\u007f")

        def _list(values: list[str]) -> str:
            return "[" + ", ".join(_str(v) for v in values) + "]"

        return (
            "[workspace]\n"
            f"name = {_str(self.workspace.name or 'name of workspace')}\n"
            f"ignore = {_list(self.workspace.ignore)}\n"
            "\n"
            "[container]\n"
            f"name = {_str(self.container.name)}\n"
            "\n"
            "[command]\n"
            f"cmds = {_list(self.command.cmds)}\n"
        )
