"""Setup commands invoked from the command line."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from pathlib import Path
import sqlite3

from rich.console import Console
from rich.prompt import Prompt

from config.settings import write_settings
from core.logging import logger
from imaging.models import ImageHandlerDiagnosticsCollection
from imaging.service import ImageHandlerService
from storage.database import connect, setup_content_repository
from storage.sites import SiteImportError, SiteImportService
from storage.users import UserAlreadyExistsError, UserRepository

Selector = Callable[[str, Mapping[str, str], str], str]


def select_driver(question: str, choices: Mapping[str, str], default: str) -> str:
    console = Console()
    for name, description in choices.items():
        console.print(f"  [bold]{name}[/bold]: {description}")
    return Prompt.ask(question, console=console, choices=list(choices), default=default)


def image_handler_command(
    service: ImageHandlerService,
    settings_file: Path,
    driver: str | None = None,
    console: Console | None = None,
    select: Selector = select_driver,
) -> int:
    """Select an image driver and write it to ``settings_file``.

    Returns:
        Exit code, 1 when no image handler is usable or the settings file
        cannot be written.

    Raises:
        OSError: The bundled test images cannot be read.
    """

    console = console or Console()
    diagnostics = service.determine_availability()
    available_handlers = diagnostics.available_image_handlers()

    if not available_handlers:
        console.print(
            "No supported image handler found. To get basic image driver support during "
            "development, install Pillow (pip install Pillow)."
        )
        return 1

    available_drivers_with_description = {
        handler.driver_name: handler.description for handler in available_handlers
    }

    if not driver:
        preferred = diagnostics.preferred_image_handler()
        driver = select(
            f"Select Image Handler ([green]{preferred.driver_name}[/green])",
            available_drivers_with_description,
            preferred.driver_name,
        )
    elif driver not in available_drivers_with_description:
        console.print(
            f'Image handler "{driver}" is not usable on this host. Available: '
            f"{', '.join(available_drivers_with_description)}"
        )
        return 1

    settings_to_write: dict = {"driver": driver}
    if not service.is_driver_enabled_in_configuration(driver):
        console.print("Enabled driver.")
        settings_to_write["enabled_drivers"] = {driver: True}

    try:
        added_yaml = write_settings(settings_file, "imaging", settings_to_write)
    except OSError as exc:
        console.print(f"Could not write {settings_file}: {exc}", style="bold red")
        return 1
    console.print()
    console.print(added_yaml, style="green", end="")
    console.print()
    console.print(f"The new image handler setting were written to [green]{settings_file}[/green]")
    logger.info("Image driver %s written to %s", driver, settings_file)
    return 0


def format_image_handler_report(diagnostics: ImageHandlerDiagnosticsCollection) -> str:
    """Return the probe results as text, one block per descriptor."""

    lines = ["Image handlers (worst to best)", "-" * 60]
    for entry in diagnostics:
        descriptor = entry.descriptor
        status = "READY" if entry.is_ready else "UNAVAILABLE"
        lines.append(f"[{status}] {descriptor.driver_name} {descriptor.description}")
        for detail in entry.status_details:
            lines.append(f"    - {detail}")
    lines.append("-" * 60)
    preferred = diagnostics.preferred_driver_name()
    lines.append(
        f"{diagnostics.ready_count()} ready, {diagnostics.unavailable_count()} unavailable, "
        f"preferred: {preferred or 'none'}"
    )
    return "\n".join(lines)


def image_handlers_report_command(service: ImageHandlerService, console: Console | None = None) -> int:
    console = console or Console()
    diagnostics = service.determine_availability()
    console.print(format_image_handler_report(diagnostics), markup=False, highlight=False)
    return 0 if diagnostics.ready_count() else 1


def cr_setup_command(
    repository_ids: Sequence[str],
    db_path: Path,
    console: Console | None = None,
) -> int:
    console = console or Console()
    if not repository_ids:
        console.print("No content repository is configured.")
        return 1
    try:
        conn = connect(db_path)
        try:
            for repository_id in repository_ids:
                table = setup_content_repository(conn, repository_id)
                console.print(f'Content repository "{repository_id}" is setup ({table}).')
        finally:
            conn.close()
    except (ValueError, sqlite3.Error) as exc:
        console.print(f"Content repository setup failed: {exc}", style="bold red")
        return 1
    return 0


def user_create_command(
    user_repository: UserRepository,
    username: str,
    password: str,
    first_name: str,
    last_name: str,
    roles: Iterable[str] = (),
    console: Console | None = None,
) -> int:
    console = console or Console()
    try:
        user = user_repository.create_user(username, password, first_name, last_name, roles)
    except UserAlreadyExistsError as exc:
        console.print(str(exc), style="bold red")
        return 1
    console.print(f'Created user "{user.username}" with roles {", ".join(user.roles) or "none"}.')
    return 0


def site_import_command(
    site_import_service: SiteImportService,
    package_key: str,
    console: Console | None = None,
) -> int:
    console = console or Console()
    try:
        sites = site_import_service.import_from_package(package_key)
    except SiteImportError as exc:
        console.print(str(exc), style="bold red")
        return 1
    for site in sites:
        console.print(f'Imported site "{site.name}" ({site.node_name}) from {package_key}.')
    return 0
