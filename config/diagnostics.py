"""Diagnostics routines for the configuration files."""

from __future__ import annotations

from pathlib import Path

import yaml

from config.controller import resolve_context
from diagnostics.models import DiagnosticResult, DiagnosticStatus


def probe(config_dir: Path | None = None) -> DiagnosticResult:
    """Check that the settings files exist and parse as YAML.

    Args:
        config_dir: Directory holding ``default.yaml``; defaults to the
            ``config`` directory below the working directory.

    Returns:
        Diagnostic result indicating config readiness.
    """

    name = "Configuration"
    config_dir = config_dir if config_dir is not None else Path("config")
    default_config = config_dir / "default.yaml"

    if not config_dir.exists():
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Config directory missing at {config_dir}",
        )

    if not default_config.exists():
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Missing default config at {default_config}",
        )

    context_dir = config_dir / resolve_context()
    candidates = [default_config]
    if context_dir.is_dir():
        candidates.extend(sorted(context_dir.glob("*.yaml")))
    override_config = config_dir / "override.yaml"
    if override_config.exists():
        candidates.append(override_config)

    for candidate in candidates:
        try:
            yaml.safe_load(candidate.read_text(encoding="utf-8"))
        except OSError as exc:
            return DiagnosticResult(
                name=name,
                status=DiagnosticStatus.FAIL,
                details=f"Config access failed: {exc}",
            )
        except yaml.YAMLError as exc:
            return DiagnosticResult(
                name=name,
                status=DiagnosticStatus.FAIL,
                details=f"Invalid YAML in {candidate}: {exc}",
            )

    return DiagnosticResult(
        name=name,
        status=DiagnosticStatus.PASS,
        details=f"{len(candidates)} settings file(s) readable at {config_dir}",
    )
