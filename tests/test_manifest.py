"""Tests for Bifrost.toml parsing."""

from pathlib import Path

import pytest

from bifrost.core.errors import ManifestError
from bifrost.core.manifest import DEFAULT_IGNORE, Manifest


SAMPLE = """
[workspace]
name = "api"
ignore = ["target", "node_modules"]

[container]
name = "podman"

[command]
cmds = ["cargo build", "cargo test"]
"""


class TestParse:
    def test_full_manifest(self):
        manifest = Manifest.from_toml(SAMPLE)
        assert manifest.workspace.name == "api"
        assert manifest.ignore_list() == ["target", "node_modules"]
        assert manifest.container.name == "podman"
        assert manifest.commands() == ["cargo build", "cargo test"]

    def test_cmd_alias(self):
        manifest = Manifest.from_toml('[command]\ncmd = ["make"]\n')
        assert manifest.commands() == ["make"]

    def test_missing_sections_use_defaults(self):
        manifest = Manifest.from_toml('[workspace]\nname = "api"\n')
        assert manifest.ignore_list() == DEFAULT_IGNORE
        assert manifest.container.name == "docker"
        assert manifest.commands() == []

    def test_invalid_toml(self):
        with pytest.raises(ManifestError):
            Manifest.from_toml("[workspace\nname = ")

    def test_wrong_types(self):
        with pytest.raises(ManifestError):
            Manifest.from_toml('[workspace]\nignore = "target"\n')

    def test_unreadable_file(self, tmp_path: Path):
        with pytest.raises(ManifestError):
            Manifest.from_file(tmp_path / "Bifrost.toml")


class TestForRealm:
    def test_without_manifest(self, project: Path):
        manifest = Manifest.for_realm(project)
        assert manifest.realm_name(project) == "project"

    def test_with_manifest(self, project: Path):
        (project / "Bifrost.toml").write_text(SAMPLE)
        assert Manifest.for_realm(project).realm_name(project) == "api"


class TestValues:
    @pytest.mark.parametrize("name", ["name of workspace", "workspace name", "name of current workspace", "  ", None])
    def test_placeholder_names_fall_back_to_cwd(self, tmp_path: Path, name):
        manifest = Manifest()
        manifest.workspace.name = name
        assert manifest.realm_name(tmp_path / "proj") == "proj"

    def test_placeholder_commands_removed(self):
        manifest = Manifest.from_toml('[command]\ncmds = ["command string(s)", "", "make", "default-arg"]\n')
        assert manifest.commands() == ["make"]

    def test_overrides_do_not_mutate(self):
        manifest = Manifest.from_toml(SAMPLE)
        updated = manifest.with_overrides(workspace="web", ignore=["dist"], container="docker", commands=["npm test"])
        assert updated.realm_name(Path("/x")) == "web"
        assert updated.ignore_list() == ["dist"]
        assert updated.container.name == "docker"
        assert updated.commands() == ["npm test"]
        assert manifest.workspace.name == "api"
        assert manifest.ignore_list() == ["target", "node_modules"]

    def test_empty_overrides_keep_values(self):
        manifest = Manifest.from_toml(SAMPLE)
        assert manifest.with_overrides(ignore=[]).ignore_list() == ["target", "node_modules"]

    def test_to_toml_is_parseable(self):
        manifest = Manifest().with_overrides(workspace='quote"d', commands=["echo 'hi'"])
        parsed = Manifest.from_toml(manifest.to_toml())
        assert parsed.workspace.name == 'quote"d'
        assert parsed.commands() == ["echo 'hi'"]

    def test_to_toml_escapes_control_characters(self):
        manifest = Manifest().with_overrides(workspace="a\x7fb", commands=["printf 'x\ty'"])
        parsed = Manifest.from_toml(manifest.to_toml())
        assert parsed.workspace.name == "a\x7fb"
        assert parsed.commands() == ["printf 'x\ty'"]

    def test_default_toml_has_placeholders(self):
        text = Manifest().to_toml()
        assert 'name = "name of workspace"' in text
        assert 'cmds = ["command string(s)"]' in text
