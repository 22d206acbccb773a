"""Command-line entry point for running health checks."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
import tempfile

import yaml

from config.diagnostics import probe as config_probe
from core.logging import log_warning
from diagnostics.models import HealthcheckEnvironment
from diagnostics.runner import format_results, has_failures, run_diagnostics
from healthchecks.content_repository import probe as content_repository_probe
from healthchecks.image_handler import probe as image_handler_probe
from healthchecks.site import probe as site_probe
from healthchecks.user import probe as user_probe
from imaging.descriptors import SUPPORTED_IMAGE_HANDLERS_WORST_TO_BEST
from imaging.drivers import FakeImagingFactory
from imaging.host import FakeHostFacts
from imaging.service import ImageHandlerService
from storage.database import connect, resolve_db_path, setup_content_repository
from storage.diagnostics import probe as storage_probe
from storage.packages import PackageManager, resolve_packages_dir
from storage.sites import SiteRepository
from storage.users import UserRepository


def add_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Run checks against a temporary offline installation.",
    )
    parser.add_argument(
        "--base-dir",
        type=Path,
        default=None,
        help="Installation directory; overrides --config-dir with <base-dir>/config.",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help="Public URL of the instance, used in hints.",
    )
    parser.add_argument(
        "--technical-details",
        action="store_true",
        help="Include technical details such as repository ids.",
    )
    parser.add_argument(
        "--worst-first",
        action="store_true",
        help="List failed checks before warnings and passes.",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""

    parser = argparse.ArgumentParser(description="Run setup health checks.")
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=Path("config"),
        help="Configuration directory.",
    )
    add_arguments(parser)
    return parser.parse_args(argv)


def _offline_results(environment: HealthcheckEnvironment) -> list:
    with tempfile.TemporaryDirectory() as tmp_dir:
        tmp_base = Path(tmp_dir)

        config_dir = tmp_base / "config"
        config_dir.mkdir(parents=True, exist_ok=True)
        (config_dir / "default.yaml").write_text("{}", encoding="utf-8")

        db_path = tmp_base / "var" / "cms.db"
        config = {
            "storage": {"db_path": str(db_path)},
            "content_repositories": {"default": {}},
            "imaging": {"driver": "Vips", "enabled_drivers": {"Vips": True}},
            "packages_dir": str(tmp_base / "packages"),
        }
        conn = connect(db_path)
        try:
            setup_content_repository(conn, "default")
        finally:
            conn.close()

        users = UserRepository(db_path=db_path)
        users.create_user("offline", "offline-password", "Offline", "Admin", ["Administrator"])
        sites = SiteRepository(db_path=db_path)

        image_handler_service = ImageHandlerService(
            config=config,
            host_facts=FakeHostFacts(extensions={"PIL._imaging", "_libvips"}),
            factory=FakeImagingFactory(available_drivers={"Gd", "Vips"}),
            descriptors=SUPPORTED_IMAGE_HANDLERS_WORST_TO_BEST,
        )

        def config_probe_offline():
            return config_probe(config_dir=config_dir)

        def storage_probe_offline():
            return storage_probe(db_path=db_path)

        def content_repository_probe_offline():
            return content_repository_probe(config=config, db_path=db_path, environment=environment)

        def image_handler_probe_offline():
            return image_handler_probe(config=config, service=image_handler_service)

        def site_probe_offline():
            return site_probe(
                site_repository=sites,
                package_manager=PackageManager(tmp_base / "packages"),
                environment=environment,
            )

        def user_probe_offline():
            return user_probe(user_repository=users)

        try:
            return run_diagnostics(
                [
                    config_probe_offline,
                    storage_probe_offline,
                    content_repository_probe_offline,
                    image_handler_probe_offline,
                    site_probe_offline,
                    user_probe_offline,
                ]
            )
        finally:
            users.close()
            sites.close()


@dataclass(frozen=True)
class _UncreatedStore:
    """Empty stand-in for a repository whose database does not exist yet."""

    db_path: Path

    def count(self) -> int:
        return 0

    def close(self) -> None:
        pass


def _open_store(store_class, db_path: Path):
    # repositories create their database when opened
    if not db_path.exists():
        return _UncreatedStore(db_path)
    return store_class(db_path=db_path)


def resolve_config_dir(args: argparse.Namespace) -> Path:
    """Return the configuration directory a health check run reads."""

    if args.base_dir is not None:
        return args.base_dir / "config"
    return getattr(args, "config_dir", None) or Path("config")


def _live_results(config_dir: Path, environment: HealthcheckEnvironment) -> list:
    from config import ConfigController

    try:
        config = ConfigController.configure(config_dir).get_config()
    except (OSError, yaml.YAMLError) as exc:
        # the configuration check reports the broken file
        log_warning(f"Configuration unavailable, checking with empty settings: {exc}")
        config = {}
    db_path = resolve_db_path(config)

    def config_probe_live():
        return config_probe(config_dir=config_dir)

    def storage_probe_live():
        return storage_probe(db_path=db_path)

    def content_repository_probe_live():
        return content_repository_probe(config=config, db_path=db_path, environment=environment)

    def image_handler_probe_live():
        return image_handler_probe(config=config)

    def site_probe_live():
        sites = _open_store(SiteRepository, db_path)
        try:
            return site_probe(
                site_repository=sites,
                package_manager=PackageManager(resolve_packages_dir(config)),
                environment=environment,
            )
        finally:
            sites.close()

    def user_probe_live():
        users = _open_store(UserRepository, db_path)
        try:
            return user_probe(user_repository=users)
        finally:
            users.close()

    return run_diagnostics(
        [
            config_probe_live,
            storage_probe_live,
            content_repository_probe_live,
            image_handler_probe_live,
            site_probe_live,
            user_probe_live,
        ]
    )


def run(args: argparse.Namespace) -> int:
    environment = HealthcheckEnvironment(
        safe_to_leak_technical_details=args.technical_details,
        base_url=args.base_url,
    )
    if args.offline and args.base_dir is None:
        results = _offline_results(environment)
    else:
        results = _live_results(resolve_config_dir(args), environment)

    print(format_results(results, worst_first=args.worst_first))
    return 1 if has_failures(results) else 0


def main(argv: list[str] | None = None) -> int:
    """Run health checks and return an exit code."""

    return run(parse_args(argv))


if __name__ == "__main__":
    raise SystemExit(main())
