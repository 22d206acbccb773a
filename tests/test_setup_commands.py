"""Tests for the setup commands."""

from __future__ import annotations

import io
from pathlib import Path

from rich.console import Console
import yaml

from imaging.drivers import FakeImagingFactory
from imaging.host import FakeHostFacts
from imaging.service import ImageHandlerService
from storage.database import connect, list_table_names
from storage.packages import PackageManager, SiteKickstarter
from storage.sites import SiteImportService, SiteRepository
from storage.users import UserRepository
from wizard.commands import (
    cr_setup_command,
    format_image_handler_report,
    image_handler_command,
    image_handlers_report_command,
    site_import_command,
    user_create_command,
)


def _console() -> Console:
    return Console(file=io.StringIO(), width=200)


def _service(available: set[str], enabled: dict | None = None) -> ImageHandlerService:
    return ImageHandlerService(
        config={"imaging": {"driver": None, "enabled_drivers": enabled or {}}},
        host_facts=FakeHostFacts(extensions={"PIL._imaging", "wand"}),
        factory=FakeImagingFactory(available_drivers=available),
    )


def test_image_handler_command_prompts_with_preferred_default(tmp_path: Path) -> None:
    settings_file = tmp_path / "Development" / "settings.imagehandling.yaml"
    console = _console()
    asked = []

    def select(question, choices, default):
        asked.append((dict(choices), default))
        return "Gd"

    exit_code = image_handler_command(_service({"Gd", "Imagick"}), settings_file, console=console, select=select)

    assert exit_code == 0
    assert list(asked[0][0]) == ["Gd", "Imagick"]
    assert asked[0][1] == "Imagick"
    assert yaml.safe_load(settings_file.read_text(encoding="utf-8")) == {
        "imaging": {"driver": "Gd", "enabled_drivers": {"Gd": True}}
    }
    output = console.file.getvalue()
    assert "Enabled driver." in output
    assert "The new image handler setting were written to" in output


def test_image_handler_command_skips_enabling_enabled_driver(tmp_path: Path) -> None:
    settings_file = tmp_path / "settings.yaml"
    console = _console()

    exit_code = image_handler_command(
        _service({"Gd"}, enabled={"Gd": True}),
        settings_file,
        driver="Gd",
        console=console,
    )

    assert exit_code == 0
    assert yaml.safe_load(settings_file.read_text(encoding="utf-8")) == {"imaging": {"driver": "Gd"}}
    assert "Enabled driver." not in console.file.getvalue()


def test_image_handler_command_without_handlers(tmp_path: Path) -> None:
    settings_file = tmp_path / "settings.yaml"

    exit_code = image_handler_command(_service(set()), settings_file, console=_console())

    assert exit_code == 1
    assert not settings_file.exists()


def test_image_handler_command_rejects_unusable_driver(tmp_path: Path) -> None:
    settings_file = tmp_path / "settings.yaml"

    exit_code = image_handler_command(_service({"Gd"}), settings_file, driver="Vips", console=_console())

    assert exit_code == 1
    assert not settings_file.exists()


def test_image_handler_report() -> None:
    diagnostics = _service({"Gd"}).determine_availability()

    report = format_image_handler_report(diagnostics)

    assert "[READY] Gd" in report
    assert '[UNAVAILABLE] Imagick' in report
    assert 'Imaging driver "Imagick" is not available.' in report
    assert report.endswith("1 ready, 4 unavailable, preferred: Gd")
    assert image_handlers_report_command(_service({"Gd"}), console=_console()) == 0
    assert image_handlers_report_command(_service(set()), console=_console()) == 1


def test_cr_setup_command(tmp_path: Path) -> None:
    db_path = tmp_path / "cms.db"

    assert cr_setup_command(["default", "archive"], db_path, console=_console()) == 0
    assert cr_setup_command([], db_path, console=_console()) == 1
    assert cr_setup_command(["Bad Id"], db_path, console=_console()) == 1

    conn = connect(db_path)
    try:
        tables = list_table_names(conn)
    finally:
        conn.close()
    assert "cr_default_events" in tables
    assert "cr_archive_events" in tables


def test_user_create_command(tmp_path: Path) -> None:
    repository = UserRepository(tmp_path / "cms.db")
    try:
        assert user_create_command(repository, "admin", "secret1", "Jon", "Doe", ["Administrator"], console=_console()) == 0
        assert user_create_command(repository, "admin", "secret1", "Jon", "Doe", console=_console()) == 1
        assert repository.count() == 1
    finally:
        repository.close()


def test_site_import_command(tmp_path: Path) -> None:
    packages_dir = tmp_path / "packages"
    SiteKickstarter(packages_dir).generate_site_package("Acme.Site", "Acme")
    repository = SiteRepository(tmp_path / "cms.db")
    try:
        service = SiteImportService(repository, PackageManager(packages_dir))

        assert site_import_command(service, "Acme.Site", console=_console()) == 0
        assert site_import_command(service, "Acme.Missing", console=_console()) == 1
        assert repository.count() == 1
    finally:
        repository.close()


def test_image_handler_command_reports_unwritable_settings(tmp_path: Path) -> None:
    blocker = tmp_path / "Development"
    blocker.write_text("not a directory", encoding="utf-8")
    console = _console()

    exit_code = image_handler_command(
        _service({"Gd"}),
        blocker / "settings.imagehandling.yaml",
        driver="Gd",
        console=console,
    )

    assert exit_code == 1
    assert "Could not write" in console.file.getvalue()
