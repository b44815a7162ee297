"""Shared test fixtures and pytest configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from bifrost.core.config import RealmConfig
from bifrost.core.logging import reset_logger
from bifrost.core.manifest import Manifest
from bifrost.core.realm import Realm


@pytest.fixture(autouse=True)
def _fresh_logger():
    reset_logger()
    yield
    reset_logger()


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A throwaway home directory; Path.home() points here."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def project(home: Path) -> Path:
    """An empty realm directory inside the home directory."""
    project = home / "project"
    project.mkdir()
    return project


@pytest.fixture
def src_tree(project: Path) -> Path:
    """``src/{a.txt=3 bytes, sub/b.txt=5 bytes}`` inside the project."""
    src = project / "src"
    (src / "sub").mkdir(parents=True)
    (src / "a.txt").write_bytes(b"abc")
    (src / "sub" / "b.txt").write_bytes(b"hello")
    return src


@pytest.fixture
def realm_config(home: Path, project: Path) -> RealmConfig:
    return RealmConfig(home=home, cwd=project)


@pytest.fixture
def make_realm(realm_config: RealmConfig):
    """Build a Realm for the project, optionally loading ``contents``."""

    def _make(contents=None, manifest: Manifest | None = None, **kwargs) -> Realm:
        return Realm.from_config(realm_config, manifest or Manifest(), contents=contents, **kwargs)

    return _make
