"""Configuration controller for YAML-based settings."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONTEXT = "Development"
CONTEXT_ENV_VAR = "CMS_SETUP_CONTEXT"


@dataclass(frozen=True)
class ConfigPaths:
    """Filesystem paths for configuration files."""

    config_dir: Path
    config_file: Path
    context_dir: Path
    override_file: Path


def resolve_context() -> str:
    """Return the application context name (e.g. ``Development``)."""

    return os.getenv(CONTEXT_ENV_VAR) or DEFAULT_CONTEXT


class ConfigController:
    """Singleton controller for loading and reading configuration.

    Files are merged in this order, later files winning:
    ``config/default.yaml``, every ``config/<Context>/*.yaml`` sorted by name,
    ``config/override.yaml``.
    """

    _instance: "ConfigController | None" = None

    def __init__(self, config_file: str = "default.yaml", config_dir: Path | None = None) -> None:
        if ConfigController._instance is not None:
            raise RuntimeError("You cannot create another ConfigController class")

        config_dir = config_dir if config_dir is not None else Path("config")
        self.context = resolve_context()
        self.paths = ConfigPaths(
            config_dir=config_dir,
            config_file=config_dir / config_file,
            context_dir=config_dir / self.context,
            override_file=config_dir / "override.yaml",
        )
        self.config: dict[str, Any] = {}
        self.load_config()

    @classmethod
    def get_instance(cls) -> "ConfigController":
        """Return the singleton instance of the controller."""

        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def configure(cls, config_dir: Path) -> "ConfigController":
        """Load configuration from ``config_dir`` and make it the singleton."""

        cls._instance = None
        cls._instance = cls(config_dir=config_dir)
        return cls._instance

    def load_config(self) -> None:
        """Load configuration from default, context and override YAML files."""

        config = self._read_yaml(self.paths.config_file)

        if self.paths.context_dir.is_dir():
            for context_file in sorted(self.paths.context_dir.glob("*.yaml")):
                config = deep_merge(config, self._read_yaml(context_file))

        if self.paths.override_file.exists():
            config = deep_merge(config, self._read_yaml(self.paths.override_file))

        self.config = config

    def refresh(self) -> None:
        """Reload configuration after settings files were written."""

        self.load_config()

    def get_config(self) -> dict[str, Any]:
        """Return the currently loaded configuration."""

        return dict(self.config)

    def get_value(self, path: str, default: Any = None) -> Any:
        """Return the value at a dotted ``path`` or ``default``."""

        return get_value_by_path(self.config, path, default)

    def settings_file(self, name: str) -> Path:
        """Return the context-specific settings file called ``name``."""

        return self.paths.context_dir / name

    @staticmethod
    def _read_yaml(path: Path) -> dict[str, Any]:
        with path.open("r", encoding="utf-8") as file:
            return yaml.safe_load(file) or {}


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge dictionaries, overriding base values with override values."""

    merged = dict(base)
    for key, value in override.items():
        if (
            key in merged
            and isinstance(merged[key], dict)
            and isinstance(value, dict)
        ):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def get_value_by_path(data: dict[str, Any], path: str, default: Any = None) -> Any:
    current: Any = data
    for segment in path.split("."):
        if not isinstance(current, dict) or segment not in current:
            return default
        current = current[segment]
    return current


def set_value_by_path(data: dict[str, Any], path: str, value: Any) -> dict[str, Any]:
    """Return a copy of ``data`` with ``value`` merged in at dotted ``path``."""

    segments = path.split(".")
    nested: Any = value
    for segment in reversed(segments):
        nested = {segment: nested}
    return deep_merge(data, nested)
