"""Site packages on disk and the kickstarter that creates them."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import logging
from pathlib import Path
import re
from typing import Any

import yaml

LOGGER = logging.getLogger(__name__)

SITE_PACKAGE_TYPE = "site"
PACKAGE_MANIFEST = "package.yaml"
SITE_CONTENT_FILE = Path("content") / "sites.yaml"
DEFAULT_PACKAGES_DIR = "./packages"

PACKAGE_KEY_PATTERN = re.compile(r"^[A-Za-z0-9]+(\.[A-Za-z0-9]+)+$")


@dataclass(frozen=True)
class Package:
    key: str
    package_type: str
    path: Path

    @property
    def site_content_file(self) -> Path:
        return self.path / SITE_CONTENT_FILE


def resolve_packages_dir(config: Mapping[str, Any] | None = None) -> Path:
    if config is None:
        from config import ConfigController

        config = ConfigController.get_instance().get_config()
    return Path(config.get("packages_dir", DEFAULT_PACKAGES_DIR)).expanduser()


class PackageManager:
    """Discover packages below a packages directory.

    Every directory holding a ``package.yaml`` with a ``key`` is a package.
    """

    def __init__(self, packages_dir: Path | None = None) -> None:
        self.packages_dir = packages_dir if packages_dir is not None else resolve_packages_dir()

    def get_packages(self) -> list[Package]:
        if not self.packages_dir.is_dir():
            return []
        packages: list[Package] = []
        for manifest in sorted(self.packages_dir.glob(f"*/{PACKAGE_MANIFEST}")):
            try:
                data = yaml.safe_load(manifest.read_text(encoding="utf-8")) or {}
            except (OSError, yaml.YAMLError) as exc:
                LOGGER.warning("Skipping unreadable package manifest %s: %s", manifest, exc)
                continue
            key = data.get("key")
            if not key:
                continue
            packages.append(
                Package(key=str(key), package_type=str(data.get("type", "library")), path=manifest.parent)
            )
        return packages

    def get_filtered_packages(self, package_type: str) -> list[Package]:
        return [package for package in self.get_packages() if package.package_type == package_type]

    def get_site_packages(self) -> list[Package]:
        return self.get_filtered_packages(SITE_PACKAGE_TYPE)

    def get_importable_site_packages(self) -> list[Package]:
        """Return site packages that ship site content to import."""

        return [package for package in self.get_site_packages() if package.site_content_file.is_file()]

    def get_package(self, key: str) -> Package | None:
        for package in self.get_packages():
            if package.key == key:
                return package
        return None

    def is_package_available(self, key: str) -> bool:
        return self.get_package(key) is not None


def node_name_for(site_name: str) -> str:
    """Return a URL-safe node name for ``site_name``."""

    node_name = re.sub(r"[^a-z0-9]+", "-", site_name.lower()).strip("-")
    return node_name or "site"


class SiteKickstarter:
    """Generate a minimal site package with one site."""

    def __init__(self, packages_dir: Path) -> None:
        self.packages_dir = packages_dir

    def generate_site_package(self, package_key: str, site_name: str) -> Package:
        if not PACKAGE_KEY_PATTERN.match(package_key):
            raise ValueError(f'"{package_key}" is not a valid package key')
        package_dir = self.packages_dir / package_key
        if package_dir.exists():
            raise FileExistsError(f"Package directory {package_dir} already exists")

        content_file = package_dir / SITE_CONTENT_FILE
        content_file.parent.mkdir(parents=True)
        (package_dir / PACKAGE_MANIFEST).write_text(
            yaml.safe_dump({"key": package_key, "type": SITE_PACKAGE_TYPE}, sort_keys=False),
            encoding="utf-8",
        )
        content_file.write_text(
            yaml.safe_dump(
                {"sites": [{"name": site_name, "node_name": node_name_for(site_name)}]},
                sort_keys=False,
            ),
            encoding="utf-8",
        )
        LOGGER.info("Kickstarted site package %s in %s", package_key, package_dir)
        return Package(key=package_key, package_type=SITE_PACKAGE_TYPE, path=package_dir)
