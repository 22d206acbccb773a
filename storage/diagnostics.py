"""Diagnostics routines for the database."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
import sqlite3
from typing import Any

from diagnostics.models import DiagnosticResult, DiagnosticStatus
from storage.database import resolve_db_path


def probe(config: Mapping[str, Any] | None = None, db_path: Path | None = None) -> DiagnosticResult:
    """Check that the database exists, answers queries and its directory is writable.

    Nothing is created: a missing database is reported as a warning.

    Args:
        config: Optional configuration used to resolve the database path.
        db_path: Optional database path override for offline testing.

    Returns:
        Diagnostic result indicating database readiness.
    """

    name = "Database"
    path = db_path if db_path is not None else resolve_db_path(config)
    if not path.exists():
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.WARN,
            details=f"Database not created yet at {path}. It is created by `cms-setup cr-setup`",
        )

    try:
        sentinel = path.parent / "diagnostics_probe.txt"
        sentinel.write_text("ok", encoding="utf-8")
        sentinel.unlink(missing_ok=True)

        conn = sqlite3.connect(f"{path.resolve().as_uri()}?mode=rw", uri=True)
        try:
            conn.execute("SELECT 1")
        finally:
            conn.close()

        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.PASS,
            details=f"Database reachable at {path}",
        )
    except OSError as exc:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Filesystem access failed: {exc}",
        )
    except sqlite3.Error as exc:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"SQLite probe failed: {exc}",
        )
