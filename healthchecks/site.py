"""Health check for site existence."""

from __future__ import annotations

from diagnostics.models import DiagnosticResult, DiagnosticStatus, HealthcheckEnvironment
from storage.packages import PackageManager
from storage.sites import SiteRepository

TITLE = "Site"


def probe(
    site_repository: SiteRepository | None = None,
    package_manager: PackageManager | None = None,
    environment: HealthcheckEnvironment | None = None,
) -> DiagnosticResult:
    """Check that a site exists, otherwise explain how to create one."""

    site_repository = site_repository or SiteRepository()
    package_manager = package_manager or PackageManager()
    environment = environment or HealthcheckEnvironment()

    if site_repository.count():
        if environment.base_url:
            root = environment.base_url.rstrip("/")
            link = f"Visit your instance at {root}. You can login via {root}/admin"
        else:
            link = "You can now visit your instance and login at the path: /admin"
        return DiagnosticResult(
            name=TITLE,
            status=DiagnosticStatus.PASS,
            details=f"Site exists. {link}",
        )

    importable = [package.key for package in package_manager.get_importable_site_packages()]

    if not importable:
        return DiagnosticResult(
            name=TITLE,
            status=DiagnosticStatus.WARN,
            details=(
                "No site was created. You can kickstart a new site package and import it via "
                "`cms-setup wizard --step site`"
            ),
        )

    if len(importable) == 1:
        package_key = importable[0]
        return DiagnosticResult(
            name=TITLE,
            status=DiagnosticStatus.WARN,
            details=(
                f"No site was created. To import the site from {package_key} you can run "
                f"`cms-setup site-import {package_key}`"
            ),
        )

    return DiagnosticResult(
        name=TITLE,
        status=DiagnosticStatus.WARN,
        details=(
            "No site was created. To import from one of the available site packages "
            f"({', '.join(importable)}) you can run `cms-setup site-import Package.Key`"
        ),
    )
