"""Tests for copying walked trees into the container."""

import stat
from pathlib import Path

import pytest

from bifrost.core import materializer
from bifrost.core.errors import IncompleteLoadError
from bifrost.core.materializer import copy_file, materialize, remove_tree
from bifrost.core.path_guard import for_create
from bifrost.core.walker import WorkingDir


@pytest.fixture
def target(home: Path) -> Path:
    return home / ".bifrost" / "container" / "bifrost" / "project"


class TestMaterialize:
    def test_recreates_tree(self, src_tree: Path, target: Path):
        wd = WorkingDir(root=src_tree).walk()
        copied = materialize(wd, target)

        assert copied == 8
        assert (target / "src" / "a.txt").read_bytes() == b"abc"
        assert (target / "src" / "sub" / "b.txt").read_bytes() == b"hello"

    def test_accepts_target_path(self, home: Path, src_tree: Path):
        target = for_create(home, "project")
        wd = WorkingDir(root=src_tree).walk()
        assert materialize(wd, target) == 8
        assert (target.path / "src" / "sub" / "b.txt").is_file()

    def test_parents_created_before_children(self, src_tree: Path, target: Path, monkeypatch):
        created = []
        original = materializer._make_dir

        def recording(path: Path) -> None:
            created.append(path)
            original(path)

        monkeypatch.setattr(materializer, "_make_dir", recording)
        materialize(WorkingDir(root=src_tree).walk(), target)
        assert created == [target / "src", target / "src" / "sub"]

    def test_drains_directories(self, src_tree: Path, target: Path):
        wd = WorkingDir(root=src_tree).walk()
        materialize(wd, target)
        assert wd.directories == []

    def test_sources_untouched(self, src_tree: Path, target: Path):
        before = sorted(p.relative_to(src_tree) for p in src_tree.rglob("*"))
        materialize(WorkingDir(root=src_tree).walk(), target)
        after = sorted(p.relative_to(src_tree) for p in src_tree.rglob("*"))
        assert before == after
        assert (src_tree / "a.txt").read_bytes() == b"abc"

    def test_single_file(self, project: Path, target: Path):
        f = project / "notes.md"
        f.write_bytes(b"# notes")
        wd = WorkingDir(root=f).walk()
        assert materialize(wd, target) == 7
        assert (target / "notes.md").read_bytes() == b"# notes"

    def test_empty_directory(self, project: Path, target: Path):
        empty = project / "empty"
        empty.mkdir()
        assert materialize(WorkingDir(root=empty).walk(), target) == 0
        assert (target / "empty").is_dir()

    def test_file_growing_after_walk_is_incomplete(self, src_tree: Path, target: Path):
        wd = WorkingDir(root=src_tree).walk()
        (src_tree / "a.txt").write_bytes(b"abcdef")
        with pytest.raises(IncompleteLoadError) as exc:
            materialize(wd, target)
        assert exc.value.expected == 8
        assert exc.value.copied == 11

    def test_miscounted_walk_is_incomplete(self, src_tree: Path, target: Path):
        wd = WorkingDir(root=src_tree).walk()
        wd.total_bytes += 1
        with pytest.raises(IncompleteLoadError):
            materialize(wd, target)


class TestCopyFile:
    def test_copies_content_and_mode(self, tmp_path: Path):
        src = tmp_path / "run.sh"
        src.write_text("#!/bin/sh\necho hi\n")
        src.chmod(0o755)
        dst = tmp_path / "copy.sh"

        assert copy_file(src, dst) == src.stat().st_size
        assert dst.read_text() == src.read_text()
        assert stat.S_IMODE(dst.stat().st_mode) == 0o755

    def test_large_file_in_chunks(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr(materializer, "CHUNK_SIZE", 7)
        src = tmp_path / "big.bin"
        src.write_bytes(bytes(range(256)) * 4)
        dst = tmp_path / "big.copy"
        assert copy_file(src, dst) == 1024
        assert dst.read_bytes() == src.read_bytes()


class TestRemoveTree:
    def test_removes(self, tmp_path: Path):
        root = tmp_path / "realm"
        (root / "a" / "b").mkdir(parents=True)
        (root / "a" / "b" / "f").write_text("x")
        remove_tree(root)
        assert not root.exists()

    def test_missing_is_ignored(self, tmp_path: Path):
        remove_tree(tmp_path / "never-existed")
