"""Configuration management for Bifrost."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from bifrost.core.errors import InvalidRealmError
from bifrost.core.path_guard import CONTAINER, bifrost_dir

logger = logging.getLogger(__name__)


class EngineConfig(BaseModel):
    """Container engine used by `setup` and `run`."""
    model_config = ConfigDict(validate_assignment=True)

    program: str = Field(default="docker", description="Container engine executable")
    image: str = Field(default="bifrost:0.1", description="Image tag built by `bifrost setup`")
    mount_point: str = Field(default="/bifrost/bifrost", description="Where the container root is mounted")
    shell: str = Field(default="bash", description="Shell used to chain realm commands")
    run_timeout_seconds: Optional[int] = Field(default=None, ge=1, description="Kill `run` after this long")


class ListingConfig(BaseModel):
    """External listing command used by `show`."""
    model_config = ConfigDict(validate_assignment=True)

    program: str = "ls"
    default_args: list[str] = Field(default_factory=lambda: ["-lr"])
    verbose_args: list[str] = Field(default_factory=lambda: ["-laR"])


def _default_home() -> Path:
    return Path.home()


def _default_logs_dir() -> Path:
    return bifrost_dir(Path.home()) / "logs"


class BifrostConfig(BaseModel):
    """Main Bifrost configuration."""
    engine: EngineConfig = Field(default_factory=EngineConfig)
    listing: ListingConfig = Field(default_factory=ListingConfig)

    log_level: str = Field(default="INFO")
    logs_dir: Path = Field(default_factory=_default_logs_dir)

    # "fail" aborts a load on the first unreadable entry, "skip" leaves it out
    walk_errors: Literal["fail", "skip"] = Field(default="fail")

    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True)


class ConfigManager:
    """Manages the Bifrost configuration file."""

    CONFIG_FILENAME = "config.yaml"

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize the configuration manager.

        Args:
            config_dir: Custom configuration directory. Defaults to ~/.bifrost
        """
        self.config_dir = Path(config_dir) if config_dir else bifrost_dir(Path.home())
        self.config_path = self.config_dir / self.CONFIG_FILENAME
        self._config: Optional[BifrostConfig] = None

    @property
    def config(self) -> BifrostConfig:
        """Get the current configuration, loading if necessary."""
        if self._config is None:
            self._config = self.load()
        return self._config

    def load(self) -> BifrostConfig:
        """
        Load configuration from file.

        Returns:
            BifrostConfig: Loaded configuration, or defaults if file doesn't exist.
        """
        if not self.config_path.exists():
            return BifrostConfig()

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if "logs_dir" in data:
                data["logs_dir"] = Path(data["logs_dir"])
            return BifrostConfig(**data)
        except (yaml.YAMLError, ValueError, TypeError) as e:
            logger.warning(f"Failed to load config from {self.config_path}: {e}")
            return BifrostConfig()

    def save(self, config: Optional[BifrostConfig] = None) -> None:
        """
        Save configuration to file.

        Args:
            config: Configuration to save. Uses current config if not provided.
        """
        if config is not None:
            self._config = config

        if self._config is None:
            self._config = BifrostConfig()

        self.config_dir.mkdir(parents=True, exist_ok=True)

        data = self._config.model_dump()
        data["logs_dir"] = str(data["logs_dir"])

        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value by dot-notation key.

        Args:
            key: Dot-notation key (e.g., "engine.image")
            default: Default value if key not found
        """
        obj: Any = self.config
        for part in key.split("."):
            if hasattr(obj, part):
                obj = getattr(obj, part)
            elif isinstance(obj, dict) and part in obj:
                obj = obj[part]
            else:
                return default
        return obj

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by dot-notation key.

        Raises:
            KeyError: if ``key`` does not name a setting.
            pydantic.ValidationError: if ``value`` is not valid for it.
        """
        parts = key.split(".")
        obj: BaseModel = self.config

        for part in parts[:-1]:
            child = getattr(obj, part, None) if part in type(obj).model_fields else None
            if not isinstance(child, BaseModel):
                raise KeyError(f"Configuration key not found: {key}")
            obj = child

        final_key = parts[-1]
        if final_key not in type(obj).model_fields:
            raise KeyError(f"Configuration key not found: {key}")
        setattr(obj, final_key, value)

    def reset(self) -> BifrostConfig:
        """Reset configuration to defaults."""
        self._config = BifrostConfig()
        return self._config


class RealmConfig(BaseModel):
    """Paths a single invocation operates from."""
    home: Path = Field(default_factory=_default_home)
    cwd: Path = Field(default_factory=lambda: Path(os.getcwd()))

    def check(self) -> RealmConfig:
        """Refuse to treat home, `/`, or the bifrost directories as a realm."""
        home = self.home.resolve()
        cwd = self.cwd.resolve()
        forbidden = {
            home,
            Path(cwd.anchor),
            bifrost_dir(home),
            bifrost_dir(home) / CONTAINER,
        }
        if cwd in forbidden:
            raise InvalidRealmError(f"cannot use {cwd} as a Bifrost realm")
        return self
