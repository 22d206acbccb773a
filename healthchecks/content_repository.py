"""Health check for content repository setup."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
import sqlite3
from typing import Any

from diagnostics.models import DiagnosticResult, DiagnosticStatus, HealthcheckEnvironment
from storage.database import connect, content_repository_table, list_table_names, resolve_db_path

TITLE = "Content repository"


def configured_repository_ids(config: Mapping[str, Any]) -> list[str]:
    return list((config.get("content_repositories") or {}).keys())


def probe(
    config: Mapping[str, Any] | None = None,
    db_path: Path | None = None,
    environment: HealthcheckEnvironment | None = None,
) -> DiagnosticResult:
    """Check that every configured content repository has its event table."""

    if config is None:
        from config import ConfigController

        config = ConfigController.get_instance().get_config()
    environment = environment or HealthcheckEnvironment()

    repository_ids = configured_repository_ids(config)
    if not repository_ids:
        return DiagnosticResult(
            name=TITLE,
            status=DiagnosticStatus.FAIL,
            details="No content repository is configured.",
        )

    path = db_path if db_path is not None else resolve_db_path(config)
    if not path.exists():
        return DiagnosticResult(
            name=TITLE,
            status=DiagnosticStatus.FAIL,
            details=f"Database missing at {path}. Please run `cms-setup cr-setup`",
        )
    try:
        conn = connect(path)
        try:
            existing_table_names = set(list_table_names(conn))
        finally:
            conn.close()
    except sqlite3.Error as exc:
        return DiagnosticResult(
            name=TITLE,
            status=DiagnosticStatus.FAIL,
            details=f"Could not list database tables: {exc}",
        )

    for repository_id in repository_ids:
        try:
            table = content_repository_table(repository_id)
        except ValueError as exc:
            return DiagnosticResult(name=TITLE, status=DiagnosticStatus.FAIL, details=str(exc))
        if table not in existing_table_names:
            return DiagnosticResult(
                name=TITLE,
                status=DiagnosticStatus.FAIL,
                details=(
                    f'Content repository "{repository_id}" was not setup. '
                    f"Please run `cms-setup cr-setup {repository_id}`"
                ),
            )

    if len(repository_ids) == 1:
        label = f'"{repository_ids[0]}" ' if environment.safe_to_leak_technical_details else ""
        return DiagnosticResult(
            name=TITLE,
            status=DiagnosticStatus.PASS,
            details=f"Content repository {label}is setup.",
        )

    note = f"({', '.join(repository_ids)}) " if environment.safe_to_leak_technical_details else ""
    return DiagnosticResult(
        name=TITLE,
        status=DiagnosticStatus.PASS,
        details=f"All content repositories {note}are setup.",
    )
