"""Tests for configuration management."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from bifrost.core.config import BifrostConfig, ConfigManager, EngineConfig


class TestBifrostConfig:
    """Tests for BifrostConfig model."""

    def test_defaults(self, home: Path):
        config = BifrostConfig()
        assert config.engine.program == "docker"
        assert config.engine.image == "bifrost:0.1"
        assert config.listing.default_args == ["-lr"]
        assert config.listing.verbose_args == ["-laR"]
        assert config.log_level == "INFO"
        assert config.logs_dir == home / ".bifrost" / "logs"
        assert config.walk_errors == "fail"

    def test_walk_errors_validated(self):
        with pytest.raises(ValidationError):
            BifrostConfig(walk_errors="ignore")

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            EngineConfig(run_timeout_seconds=0)


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_default_location(self, home: Path):
        manager = ConfigManager()
        assert manager.config_path == home / ".bifrost" / "config.yaml"

    def test_load_missing_returns_defaults(self, tmp_path: Path):
        manager = ConfigManager(config_dir=tmp_path)
        assert manager.load() == BifrostConfig()

    def test_save_and_load(self, tmp_path: Path):
        manager = ConfigManager(config_dir=tmp_path / "cfg")
        config = BifrostConfig(log_level="DEBUG", walk_errors="skip")
        config.engine.image = "bifrost:dev"
        manager.save(config)

        data = yaml.safe_load(manager.config_path.read_text())
        assert data["engine"]["image"] == "bifrost:dev"
        assert isinstance(data["logs_dir"], str)

        loaded = ConfigManager(config_dir=tmp_path / "cfg").load()
        assert loaded.log_level == "DEBUG"
        assert loaded.walk_errors == "skip"
        assert loaded.engine.image == "bifrost:dev"
        assert loaded.logs_dir == config.logs_dir

    def test_invalid_yaml_falls_back(self, tmp_path: Path):
        (tmp_path / "config.yaml").write_text("engine: [unclosed\n")
        assert ConfigManager(config_dir=tmp_path).load() == BifrostConfig()

    def test_invalid_values_fall_back(self, tmp_path: Path):
        (tmp_path / "config.yaml").write_text("walk_errors: sometimes\n")
        assert ConfigManager(config_dir=tmp_path).load().walk_errors == "fail"

    def test_get(self, tmp_path: Path):
        manager = ConfigManager(config_dir=tmp_path)
        assert manager.get("engine.program") == "docker"
        assert manager.get("listing.program") == "ls"
        assert manager.get("engine.nope", "fallback") == "fallback"

    def test_set(self, tmp_path: Path):
        manager = ConfigManager(config_dir=tmp_path)
        manager.set("engine.shell", "sh")
        assert manager.config.engine.shell == "sh"
        with pytest.raises(KeyError):
            manager.set("engine.nope", 1)
        with pytest.raises(KeyError):
            manager.set("nope.shell", 1)

    def test_reset(self, tmp_path: Path):
        manager = ConfigManager(config_dir=tmp_path)
        manager.set("log_level", "DEBUG")
        assert manager.reset().log_level == "INFO"
        assert manager.config.log_level == "INFO"

    def test_set_validates_and_coerces(self, tmp_path: Path):
        manager = ConfigManager(config_dir=tmp_path)
        manager.set("engine.run_timeout_seconds", "30")
        assert manager.config.engine.run_timeout_seconds == 30
        with pytest.raises(ValidationError):
            manager.set("walk_errors", "sometimes")
        assert manager.config.walk_errors == "fail"

    def test_set_rejects_non_setting_paths(self, tmp_path: Path):
        manager = ConfigManager(config_dir=tmp_path)
        with pytest.raises(KeyError):
            manager.set("log_level.upper", "x")
        with pytest.raises(KeyError):
            manager.set("engine.model_config", {})
