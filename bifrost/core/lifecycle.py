"""Operation lifecycle: prepare, then build, then execute.

Each stage is a separate object that only offers the next transition::

    result = LoadOperation(realm).prepare().build().execute()

A stage can be advanced once. ``prepare`` validates the target and takes
the realm lock before anything touches the filesystem; the lock is
released when ``execute`` finishes or any stage fails.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from bifrost.core.config import ListingConfig
from bifrost.core.diff import diff_realm
from bifrost.core.engine import ContainerEngine
from bifrost.core.errors import (
    BifrostError,
    IncompleteLoadError,
    LifecycleError,
    ManifestError,
    NotFoundError,
)
from bifrost.core.lock import RealmLock
from bifrost.core.materializer import materialize, remove_tree
from bifrost.core.path_guard import TargetPath, check_name, container_root, for_create, for_existing
from bifrost.core.process import run_process
from bifrost.core.realm import Mode, Realm
from bifrost.core.walker import ErrorPolicy

logger = logging.getLogger(__name__)


@dataclass
class OperationResult:
    """What every operation's ``execute`` returns."""
    name: str
    bytes_copied: Optional[int] = None
    captured_text: Optional[bytes] = None
    stderr: Optional[bytes] = None
    mode: Mode = Mode.NORMAL

    @property
    def text(self) -> str:
        if self.captured_text is None:
            return ""
        return self.captured_text.decode("utf-8", errors="replace")


class _Stage:
    def __init__(self) -> None:
        self._advanced = False

    def _advance(self, transition: str) -> None:
        if self._advanced:
            raise LifecycleError(f"{type(self).__name__}.{transition}() may only be called once")
        self._advanced = True


class Operation(_Stage, ABC):
    """An unprepared operation on one realm."""

    kind: str = "operation"
    removes_realm: bool = False

    def __init__(self, realm: Realm):
        super().__init__()
        self.realm = realm

    def prepare(self) -> Prepared:
        self._advance("prepare")
        name = check_name(self.realm.name)
        lock = RealmLock(self.realm.home, name).acquire()
        try:
            target = self._prepare()
        except NotFoundError:
            # Nothing is loaded under this name, so its lock file goes too.
            lock.release(remove=True)
            raise
        except BaseException:
            lock.release()
            raise
        logger.debug(f"{self.kind} {name}: prepared {target}")
        return Prepared(self, target, lock)

    @abstractmethod
    def _prepare(self) -> TargetPath:
        """Validate and return the target path. Must not modify the filesystem."""

    def _build(self, target: TargetPath) -> None:
        pass

    @abstractmethod
    def _execute(self, target: TargetPath) -> OperationResult:
        """Perform the operation's side effects."""


class Prepared(_Stage):
    """An operation whose target has been validated and locked."""

    def __init__(self, operation: Operation, target: TargetPath, lock: RealmLock):
        super().__init__()
        self.operation = operation
        self.target = target
        self._lock = lock

    def build(self) -> Built:
        self._advance("build")
        try:
            self.operation._build(self.target)
        except BaseException:
            self._lock.release()
            raise
        logger.debug(f"{self.operation.kind} {self.target.name}: built")
        return Built(self.operation, self.target, self._lock)


class Built(_Stage):
    """An operation ready to run."""

    def __init__(self, operation: Operation, target: TargetPath, lock: RealmLock):
        super().__init__()
        self.operation = operation
        self.target = target
        self._lock = lock

    def execute(self) -> OperationResult:
        self._advance("execute")
        try:
            result = self.operation._execute(self.target)
        except BaseException:
            self._lock.release()
            raise
        self._lock.release(remove=self.operation.removes_realm)
        logger.info(f"{self.operation.kind} {self.target.name}: done")
        return result


class LoadOperation(Operation):
    """Copy the realm's contents into a new target inside the container."""

    kind = "load"

    def __init__(self, realm: Realm, on_error: ErrorPolicy = ErrorPolicy.FAIL):
        super().__init__(realm)
        self.on_error = on_error
        self.total_bytes = 0

    def _prepare(self) -> TargetPath:
        return for_create(self.realm.home, self.realm.name)

    def _build(self, target: TargetPath) -> None:
        total = 0
        for wd in self.realm.contents:
            wd.walk(on_error=self.on_error)
            total += wd.total_bytes
        self.total_bytes = total

    def _execute(self, target: TargetPath) -> OperationResult:
        copied = 0
        try:
            for wd in self.realm.contents:
                copied += materialize(wd, target)
            if copied != self.total_bytes:
                raise IncompleteLoadError(expected=self.total_bytes, copied=copied)
        except BifrostError:
            # The target did not exist before prepare(), so removing it
            # cannot touch anything this load did not create.
            logger.error(f"Load of {target.name} failed, removing partial {target.path}")
            remove_tree(target.path)
            raise
        return OperationResult(name=target.name, bytes_copied=copied, mode=self.realm.mode)


class Listing(Enum):
    """Which view `show` produces."""
    DEFAULT = "default"
    ALL = "all"
    DIFF = "diff"


class ShowOperation(Operation):
    """Describe what is currently loaded for the realm."""

    kind = "show"

    def __init__(
        self,
        realm: Realm,
        listing: Listing = Listing.DEFAULT,
        config: Optional[ListingConfig] = None,
    ):
        super().__init__(realm)
        self.listing = listing
        self.config = config or ListingConfig()
        self.argv: list[str] = []

    def _prepare(self) -> TargetPath:
        return for_existing(self.realm.home, self.realm.name)

    def _build(self, target: TargetPath) -> None:
        if self.listing is Listing.ALL:
            self.argv = [self.config.program, *self.config.verbose_args]
        elif self.listing is Listing.DEFAULT:
            self.argv = [self.config.program, *self.config.default_args]

    def _execute(self, target: TargetPath) -> OperationResult:
        if self.listing is Listing.DIFF:
            diff = diff_realm(self.realm.cwd, target.path, self.realm.manifest.ignore_list())
            text = diff.render().encode("utf-8")
        else:
            text = run_process(self.argv, cwd=target.path).stdout
        return OperationResult(name=target.name, captured_text=text, mode=self.realm.mode)


class UnloadOperation(Operation):
    """Delete the realm's target from the container."""

    kind = "unload"
    removes_realm = True

    def _prepare(self) -> TargetPath:
        return for_existing(self.realm.home, self.realm.name)

    def _execute(self, target: TargetPath) -> OperationResult:
        remove_tree(target.path)
        return OperationResult(name=target.name, mode=self.realm.mode)


class RunOperation(Operation):
    """Run the manifest's commands in a container against the realm."""

    kind = "run"

    def __init__(self, realm: Realm, engine: Optional[ContainerEngine] = None):
        super().__init__(realm)
        self.engine = engine or ContainerEngine(program=realm.manifest.container.name)
        self.commands: list[str] = []

    def _prepare(self) -> TargetPath:
        target = for_existing(self.realm.home, self.realm.name)
        commands = self.realm.manifest.commands()
        if not commands:
            raise ManifestError("no commands to run: add them under [command] cmds in Bifrost.toml")
        self.commands = commands
        return target

    def _execute(self, target: TargetPath) -> OperationResult:
        output = self.engine.run(self.commands, container_root(self.realm.home), target.name)
        return OperationResult(
            name=target.name,
            captured_text=output.stdout,
            stderr=output.stderr,
            mode=self.realm.mode,
        )
