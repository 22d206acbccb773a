"""Writing chosen settings into YAML settings files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from config.controller import set_value_by_path

LOGGER = logging.getLogger(__name__)


def dump_yaml(data: dict[str, Any]) -> str:
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, indent=2)


def write_settings(filename: Path, path: str, settings: Any) -> str:
    """Merge ``settings`` at dotted ``path`` into the YAML file ``filename``.

    Existing files are modified, missing files (and their directories) are
    created.

    Returns:
        The YAML fragment that was added.
    """

    if filename.exists():
        previous_settings = yaml.safe_load(filename.read_text(encoding="utf-8")) or {}
    else:
        previous_settings = {}

    new_settings = set_value_by_path(previous_settings, path, settings)
    filename.parent.mkdir(parents=True, exist_ok=True)
    filename.write_text(dump_yaml(new_settings), encoding="utf-8")
    LOGGER.info("Wrote settings for %s to %s", path, filename)
    return dump_yaml(set_value_by_path({}, path, settings))
