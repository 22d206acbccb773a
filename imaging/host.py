"""Read-only host facts consulted by the image handler probe."""

from __future__ import annotations

from dataclasses import dataclass, field
import importlib.util
import os
from pathlib import Path
from typing import Mapping, Protocol


class HostFacts(Protocol):
    """Minimal host query interface for the image handler probe."""

    def is_extension_loaded(self, name: str) -> bool:
        """Return whether the extension module ``name`` can be loaded."""

    def configuration_value(self, key: str) -> str | None:
        """Return the host configuration value for ``key``."""

    def configuration_hint(self, key: str, value: str) -> str:
        """Return a shell line that sets ``key`` to ``value``."""


@dataclass(frozen=True)
class SystemHostFacts:
    """Host facts backed by the running interpreter and its environment."""

    env_file: Path | None = None

    def is_extension_loaded(self, name: str) -> bool:
        try:
            return importlib.util.find_spec(name) is not None
        except (ImportError, ValueError):
            # find_spec imports parent packages, which may be missing
            return False

    def configuration_value(self, key: str) -> str | None:
        return os.environ.get(key)

    def configuration_hint(self, key: str, value: str) -> str:
        if self.env_file is not None:
            return f"echo {key}={value} >> {self.env_file}"
        return f"export {key}={value}"


@dataclass
class FakeHostFacts:
    """Fake host facts for offline diagnostics."""

    extensions: set[str] = field(default_factory=set)
    configuration: Mapping[str, str] = field(default_factory=dict)

    def is_extension_loaded(self, name: str) -> bool:
        return name in self.extensions

    def configuration_value(self, key: str) -> str | None:
        return self.configuration.get(key)

    def configuration_hint(self, key: str, value: str) -> str:
        return f"export {key}={value}"
