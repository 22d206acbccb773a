"""Run health check probes and render their report."""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable, Sequence

from core.logging import logger as LOGGER
from diagnostics.models import DiagnosticResult, DiagnosticStatus

Probe = Callable[[], DiagnosticResult]

_SEVERITY_ORDER = {
    DiagnosticStatus.FAIL: 0,
    DiagnosticStatus.WARN: 1,
    DiagnosticStatus.PASS: 2,
}


def summarize(results: Iterable[DiagnosticResult]) -> Counter:
    """Count results per status."""

    return Counter(result.status for result in results)


def format_results(
    results: Sequence[DiagnosticResult],
    title: str = "Health report",
    worst_first: bool = False,
) -> str:
    """Return the report as text, one line per check and a summary line.

    With ``worst_first`` failures are listed before warnings and passes; the
    order of checks with the same status is kept.
    """

    ordered = sorted(results, key=lambda result: _SEVERITY_ORDER[result.status]) if worst_first else results
    counts = summarize(results)
    lines = [title, "-" * 60]
    lines.extend(f"[{result.status.value}] {result.name}: {result.details}" for result in ordered)
    lines.append("-" * 60)
    lines.append(
        f"{counts[DiagnosticStatus.PASS]} passed, {counts[DiagnosticStatus.WARN]} warning(s), "
        f"{counts[DiagnosticStatus.FAIL]} failed"
    )
    return "\n".join(lines)


def has_failures(results: Iterable[DiagnosticResult]) -> bool:
    return summarize(results)[DiagnosticStatus.FAIL] > 0


def _probe_title(probe: Probe) -> str:
    return getattr(probe, "title", None) or getattr(probe, "__name__", "unknown_probe")


def run_diagnostics(probes: Iterable[Probe]) -> list[DiagnosticResult]:
    """Run every probe; a raising probe becomes a FAIL result."""

    results: list[DiagnosticResult] = []
    for probe in probes:
        try:
            result = probe()
        except Exception as exc:  # noqa: BLE001 - remaining checks still run
            LOGGER.exception("Health check %s raised", _probe_title(probe))
            result = DiagnosticResult(
                name=_probe_title(probe),
                status=DiagnosticStatus.FAIL,
                details=f"Check raised an exception: {exc}",
            )
        results.append(result)
    return results
