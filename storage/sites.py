"""SQLite-backed storage for sites and the site import."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
import threading
import time

import yaml

from storage.database import connect, resolve_db_path
from storage.packages import PackageManager

LOGGER = logging.getLogger(__name__)


def _now_millis() -> int:
    return int(time.time() * 1000)


class SiteImportError(RuntimeError):
    """Raised when site content cannot be imported from a package."""


@dataclass(frozen=True)
class Site:
    node_name: str
    name: str
    site_package_key: str
    created: int


class SiteRepository:
    """Manage persisted sites."""

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path if db_path is not None else resolve_db_path()
        self._lock = threading.Lock()
        self._conn = connect(self._db_path)
        self._initialize_db()

    def _initialize_db(self) -> None:
        cursor = self._conn.cursor()
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS sites (
                node_name TEXT PRIMARY KEY,
                name TEXT,
                site_package_key TEXT,
                created INTEGER
            )
            """
        )
        self._conn.commit()

    def find_all(self) -> list[Site]:
        cursor = self._conn.execute(
            "SELECT node_name, name, site_package_key, created FROM sites ORDER BY created, node_name"
        )
        return [
            Site(node_name=row[0], name=row[1], site_package_key=row[2], created=row[3])
            for row in cursor.fetchall()
        ]

    def count(self) -> int:
        cursor = self._conn.execute("SELECT COUNT(*) FROM sites")
        return int(cursor.fetchone()[0])

    def add(self, site: Site) -> None:
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO sites (node_name, name, site_package_key, created)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(node_name) DO UPDATE SET
                    name = excluded.name,
                    site_package_key = excluded.site_package_key
                """,
                (site.node_name, site.name, site.site_package_key, site.created),
            )
            self._conn.commit()

    def remove_all(self) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM sites")
            self._conn.commit()

    def close(self) -> None:
        self._conn.close()


class SiteImportService:
    """Import the sites a site package ships in ``content/sites.yaml``."""

    def __init__(self, site_repository: SiteRepository, package_manager: PackageManager) -> None:
        self.site_repository = site_repository
        self.package_manager = package_manager

    def import_from_package(self, package_key: str) -> list[Site]:
        package = self.package_manager.get_package(package_key)
        if package is None:
            raise SiteImportError(f'Package "{package_key}" is not available')

        content_file = package.site_content_file
        try:
            content = yaml.safe_load(content_file.read_text(encoding="utf-8")) or {}
        except OSError as exc:
            raise SiteImportError(f"Cannot read site content {content_file}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise SiteImportError(f"Invalid site content {content_file}: {exc}") from exc

        entries = content.get("sites") or []
        if not entries:
            raise SiteImportError(f"No sites defined in {content_file}")

        imported: list[Site] = []
        for entry in entries:
            node_name = entry.get("node_name")
            if not node_name:
                raise SiteImportError(f"Site entry without node_name in {content_file}")
            site = Site(
                node_name=str(node_name),
                name=str(entry.get("name", node_name)),
                site_package_key=package_key,
                created=_now_millis(),
            )
            self.site_repository.add(site)
            imported.append(site)
        LOGGER.info("Imported %d site(s) from %s", len(imported), package_key)
        return imported
