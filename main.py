"""Command-line entry point for cms-setup."""

from __future__ import annotations

import argparse
from pathlib import Path
import sys

from config import ConfigController
from core.logging import configure_logging, enable_file_logging, log_error
from diagnostics import run as healthcheck_run
from healthchecks.content_repository import configured_repository_ids
from imaging.service import BROKEN_SAMPLES_MESSAGE, ImageHandlerService
from storage.database import resolve_db_path
from storage.packages import PackageManager, SiteKickstarter, resolve_packages_dir
from storage.sites import SiteImportService, SiteRepository
from storage.users import UserRepository
from wizard.commands import (
    cr_setup_command,
    image_handler_command,
    image_handlers_report_command,
    site_import_command,
    user_create_command,
)
from wizard.console import ConsoleRenderer
from wizard.steps import (
    IMAGE_HANDLING_SETTINGS_FILE,
    AdministratorStep,
    ImageHandlerStep,
    SetupError,
    SiteImportStep,
)

WIZARD_STEPS = ("administrator", "imagehandler", "site")


def _split_roles(value: str) -> list[str]:
    return [role.strip() for role in value.split(",") if role.strip()]


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Raw command-line arguments.

    Returns:
        Parsed arguments namespace.
    """

    parser = argparse.ArgumentParser(
        prog="cms-setup",
        description="Set up and check a CMS installation.",
    )
    parser.add_argument("--config-dir", type=Path, default=Path("config"), help="Configuration directory.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level.")
    parser.add_argument("--log-file", type=Path, default=None, help="Also log to this file.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    imagehandler = subparsers.add_parser("imagehandler", help="Select and configure the image driver.")
    imagehandler.add_argument("--driver", default=None, help="Driver name; prompts when omitted.")

    subparsers.add_parser("imagehandlers", help="Show which image drivers are usable.")

    healthcheck = subparsers.add_parser("healthcheck", help="Run health checks.")
    healthcheck_run.add_arguments(healthcheck)

    wizard = subparsers.add_parser("wizard", help="Run the setup wizard.")
    wizard.add_argument("--step", choices=WIZARD_STEPS, action="append", help="Only run the given step(s).")

    cr_setup = subparsers.add_parser("cr-setup", help="Set up content repositories.")
    cr_setup.add_argument("repository_ids", nargs="*", help="Repository ids; defaults to all configured.")

    user_create = subparsers.add_parser("user-create", help="Create a backend user.")
    user_create.add_argument(
        "--roles",
        type=_split_roles,
        default=[],
        help="Comma separated roles of the new user.",
    )
    user_create.add_argument("username")
    user_create.add_argument("password")
    user_create.add_argument("first_name")
    user_create.add_argument("last_name")

    site_import = subparsers.add_parser("site-import", help="Import sites from a site package.")
    site_import.add_argument("package_key")

    return parser.parse_args(argv)


def run_wizard(config_controller: ConfigController, steps: list[str]) -> int:
    config = config_controller.get_config()
    db_path = resolve_db_path(config)
    user_repository = UserRepository(db_path=db_path)
    site_repository = SiteRepository(db_path=db_path)
    package_manager = PackageManager(resolve_packages_dir(config))

    available_steps = {
        "administrator": lambda: AdministratorStep(user_repository),
        "imagehandler": lambda: ImageHandlerStep(
            ImageHandlerService(config=config),
            config_controller.settings_file(IMAGE_HANDLING_SETTINGS_FILE),
            on_settings_written=config_controller.refresh,
        ),
        "site": lambda: SiteImportStep(
            package_manager,
            site_repository,
            SiteImportService(site_repository, package_manager),
            SiteKickstarter(package_manager.packages_dir),
        ),
    }

    renderer = ConsoleRenderer()
    try:
        for name in steps:
            renderer.run(available_steps[name]())
    except SetupError as exc:
        log_error(str(exc))
        return 1
    finally:
        user_repository.close()
        site_repository.close()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Application entry point.

    Args:
        argv: Optional list of command-line arguments.

    Returns:
        Process exit code.
    """

    args = parse_args(argv if argv is not None else sys.argv[1:])
    configure_logging(args.log_level)
    if args.log_file is not None:
        enable_file_logging(args.log_file)

    # the health check loads --config-dir itself and reports a broken one
    if args.command == "healthcheck":
        return healthcheck_run.run(args)

    config_controller = ConfigController.configure(args.config_dir)
    config = config_controller.get_config()

    if args.command in ("imagehandler", "imagehandlers"):
        try:
            if args.command == "imagehandlers":
                return image_handlers_report_command(ImageHandlerService(config=config))
            return image_handler_command(
                ImageHandlerService(config=config),
                config_controller.settings_file(IMAGE_HANDLING_SETTINGS_FILE),
                driver=args.driver,
            )
        except OSError as exc:
            log_error(f"{BROKEN_SAMPLES_MESSAGE}: {exc}")
            return 1
    if args.command == "wizard":
        return run_wizard(config_controller, args.step or list(WIZARD_STEPS))
    if args.command == "cr-setup":
        repository_ids = args.repository_ids or configured_repository_ids(config)
        return cr_setup_command(repository_ids, resolve_db_path(config))
    if args.command == "user-create":
        user_repository = UserRepository(db_path=resolve_db_path(config))
        try:
            return user_create_command(
                user_repository,
                args.username,
                args.password,
                args.first_name,
                args.last_name,
                args.roles,
            )
        finally:
            user_repository.close()
    if args.command == "site-import":
        site_repository = SiteRepository(db_path=resolve_db_path(config))
        try:
            return site_import_command(
                SiteImportService(site_repository, PackageManager(resolve_packages_dir(config))),
                args.package_key,
            )
        finally:
            site_repository.close()
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
