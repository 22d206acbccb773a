"""Health check for the configured image driver."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from diagnostics.models import DiagnosticResult, DiagnosticStatus
from imaging.service import BROKEN_SAMPLES_MESSAGE, ImageHandlerService

TITLE = "Image handling"


def probe(
    config: Mapping[str, Any] | None = None,
    service: ImageHandlerService | None = None,
) -> DiagnosticResult:
    """Compare the configured image driver with the best usable one."""

    if config is None:
        from config import ConfigController

        config = ConfigController.get_instance().get_config()

    configured_driver = (config.get("imaging") or {}).get("driver")
    if not configured_driver:
        return DiagnosticResult(
            name=TITLE,
            status=DiagnosticStatus.FAIL,
            details=(
                "No image driver in imaging.driver configured. "
                "For configuration you can use `cms-setup imagehandler`"
            ),
        )

    service = service or ImageHandlerService(config=config)
    try:
        diagnostics = service.determine_availability()
    except OSError as exc:
        return DiagnosticResult(
            name=TITLE,
            status=DiagnosticStatus.FAIL,
            details=f"{BROKEN_SAMPLES_MESSAGE}: {exc}",
        )

    preferred_driver = diagnostics.preferred_driver_name()
    if preferred_driver is None:
        return DiagnosticResult(
            name=TITLE,
            status=DiagnosticStatus.FAIL,
            details="No supported image handler found. Run `cms-setup imagehandlers` for details",
        )

    if not diagnostics.is_ready(configured_driver):
        return DiagnosticResult(
            name=TITLE,
            status=DiagnosticStatus.FAIL,
            details=(
                f'The configured image driver "{configured_driver}" is not usable on this host. '
                "For configuration you can use `cms-setup imagehandler`"
            ),
        )

    if configured_driver != preferred_driver:
        return DiagnosticResult(
            name=TITLE,
            status=DiagnosticStatus.WARN,
            details=(
                "You can use a more optimal image driver than in imaging.driver configured. "
                "For configuration you can use `cms-setup imagehandler`"
            ),
        )

    return DiagnosticResult(
        name=TITLE,
        status=DiagnosticStatus.PASS,
        details="The image driver is correctly setup",
    )
