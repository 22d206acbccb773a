"""Tests for the content repository health check."""

from __future__ import annotations

from pathlib import Path

from diagnostics.models import DiagnosticStatus, HealthcheckEnvironment
from healthchecks.content_repository import probe
from storage.database import connect, setup_content_repository


def _setup(db_path: Path, *repository_ids: str) -> None:
    conn = connect(db_path)
    try:
        for repository_id in repository_ids:
            setup_content_repository(conn, repository_id)
    finally:
        conn.close()


def test_fails_without_configured_repositories(tmp_path: Path) -> None:
    result = probe(config={"content_repositories": {}}, db_path=tmp_path / "cms.db")

    assert result.status is DiagnosticStatus.FAIL
    assert result.details == "No content repository is configured."


def test_fails_when_database_is_missing(tmp_path: Path) -> None:
    result = probe(config={"content_repositories": {"default": {}}}, db_path=tmp_path / "cms.db")

    assert result.status is DiagnosticStatus.FAIL
    assert "cr-setup" in result.details


def test_fails_when_repository_was_not_setup(tmp_path: Path) -> None:
    db_path = tmp_path / "cms.db"
    _setup(db_path, "default")

    result = probe(
        config={"content_repositories": {"default": {}, "archive": {}}},
        db_path=db_path,
    )

    assert result.status is DiagnosticStatus.FAIL
    assert 'Content repository "archive" was not setup.' in result.details


def test_single_repository_hides_id_by_default(tmp_path: Path) -> None:
    db_path = tmp_path / "cms.db"
    _setup(db_path, "default")

    result = probe(config={"content_repositories": {"default": {}}}, db_path=db_path)

    assert result.status is DiagnosticStatus.PASS
    assert result.details == "Content repository is setup."


def test_single_repository_with_technical_details(tmp_path: Path) -> None:
    db_path = tmp_path / "cms.db"
    _setup(db_path, "default")

    result = probe(
        config={"content_repositories": {"default": {}}},
        db_path=db_path,
        environment=HealthcheckEnvironment(safe_to_leak_technical_details=True),
    )

    assert result.details == 'Content repository "default" is setup.'


def test_several_repositories(tmp_path: Path) -> None:
    db_path = tmp_path / "cms.db"
    _setup(db_path, "default", "archive")
    config = {"content_repositories": {"default": {}, "archive": {}}}

    hidden = probe(config=config, db_path=db_path)
    shown = probe(
        config=config,
        db_path=db_path,
        environment=HealthcheckEnvironment(safe_to_leak_technical_details=True),
    )

    assert hidden.status is DiagnosticStatus.PASS
    assert hidden.details == "All content repositories are setup."
    assert shown.details == "All content repositories (default, archive) are setup."


def test_invalid_repository_id(tmp_path: Path) -> None:
    db_path = tmp_path / "cms.db"
    _setup(db_path, "default")

    result = probe(config={"content_repositories": {"Not Valid": {}}}, db_path=db_path)

    assert result.status is DiagnosticStatus.FAIL
    assert "Invalid content repository id" in result.details
