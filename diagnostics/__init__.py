"""Diagnostics helpers for cms-setup."""

from diagnostics.models import DiagnosticResult, DiagnosticStatus, HealthcheckEnvironment
from diagnostics.runner import format_results, has_failures, run_diagnostics, summarize

__all__ = [
    "DiagnosticResult",
    "DiagnosticStatus",
    "HealthcheckEnvironment",
    "format_results",
    "has_failures",
    "run_diagnostics",
    "summarize",
]
