"""Tests for the diagnostics runner and the healthcheck entry point."""

from __future__ import annotations

from pathlib import Path

from config.controller import ConfigController
from diagnostics import run as healthcheck_run
from diagnostics.models import DiagnosticResult, DiagnosticStatus
from diagnostics.runner import format_results, has_failures, run_diagnostics, summarize


def test_run_diagnostics_turns_exceptions_into_failures() -> None:
    """A raising probe should not stop the remaining probes."""

    def broken_probe() -> DiagnosticResult:
        raise RuntimeError("boom")

    def working_probe() -> DiagnosticResult:
        return DiagnosticResult(name="Working", status=DiagnosticStatus.PASS, details="ok")

    results = run_diagnostics([broken_probe, working_probe])

    assert results[0].name == "broken_probe"
    assert results[0].status is DiagnosticStatus.FAIL
    assert "boom" in results[0].details
    assert results[1].status is DiagnosticStatus.PASS
    assert has_failures(results)


def test_run_diagnostics_names_failures_by_title() -> None:
    def probe() -> DiagnosticResult:
        raise OSError("disk gone")

    probe.title = "Database"

    assert run_diagnostics([probe])[0].name == "Database"


def test_format_results() -> None:
    results = [
        DiagnosticResult(name="User", status=DiagnosticStatus.PASS, details="At least one user exists"),
        DiagnosticResult(name="Site", status=DiagnosticStatus.WARN, details="No site was created."),
        DiagnosticResult(name="Image handling", status=DiagnosticStatus.FAIL, details="No driver"),
    ]

    report = format_results(results)
    worst_first = format_results(results, worst_first=True).splitlines()

    assert report.splitlines()[0] == "Health report"
    assert "[PASS] User: At least one user exists" in report
    assert "[WARN] Site: No site was created." in report
    assert report.endswith("1 passed, 1 warning(s), 1 failed")
    assert worst_first[2].startswith("[FAIL] Image handling")
    assert worst_first[4].startswith("[PASS] User")
    assert summarize(results)[DiagnosticStatus.WARN] == 1


def test_offline_healthcheck_passes(capsys) -> None:
    """Offline checks should pass with only the site warning."""

    exit_code = healthcheck_run.main(["--offline"])

    output = capsys.readouterr().out
    assert exit_code == 0
    assert "[PASS] Image handling: The image driver is correctly setup" in output
    assert "[PASS] Content repository: Content repository is setup." in output
    assert "[WARN] Site:" in output


def test_live_healthcheck_reports_missing_setup(tmp_path: Path, capsys, monkeypatch) -> None:
    """A fresh installation should fail until it has been set up, without creating storage."""

    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "default.yaml").write_text(
        f"storage:\n  db_path: {tmp_path / 'var' / 'cms.db'}\n"
        f"packages_dir: {tmp_path / 'packages'}\n"
        "content_repositories:\n  default: {}\n"
        "imaging:\n  driver: null\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("CMS_SETUP_CONTEXT", "Testing")
    ConfigController._instance = None
    try:
        exit_code = healthcheck_run.main(["--base-dir", str(tmp_path), "--technical-details", "--worst-first"])
    finally:
        ConfigController._instance = None

    output = capsys.readouterr().out
    assert exit_code == 1
    assert "[PASS] Configuration" in output
    assert "[WARN] Database: Database not created yet" in output
    assert "[FAIL] Content repository: Database missing" in output
    assert "[FAIL] Image handling: No image driver" in output
    assert "[FAIL] User:" in output
    assert output.index("[FAIL]") < output.index("[PASS]")
    assert not (tmp_path / "var").exists()
