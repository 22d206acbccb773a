"""Models for diagnostics and health check results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DiagnosticStatus(str, Enum):
    """Severity for health checks and diagnostics probes."""

    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"


@dataclass(frozen=True)
class DiagnosticResult:
    """Result for a single diagnostic check."""

    name: str
    status: DiagnosticStatus
    details: str


@dataclass(frozen=True)
class HealthcheckEnvironment:
    """Context a health check renders its message for.

    Technical details such as content repository identifiers are only
    included when ``safe_to_leak_technical_details`` is set. ``base_url`` is
    the public root of the instance when the check runs inside a request.
    """

    safe_to_leak_technical_details: bool = False
    base_url: str | None = None
