"""Image handler capability probing and ranking."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import logging
from pathlib import Path
from typing import Any

from imaging.descriptors import descriptors_from_config
from imaging.drivers import ImagingFactory
from imaging.host import HostFacts, SystemHostFacts
from imaging.models import (
    ImageHandler,
    ImageHandlerDescriptor,
    ImageHandlerDiagnostics,
    ImageHandlerDiagnosticsCollection,
)

LOGGER = logging.getLogger(__name__)

TEST_IMAGE_DIR = Path(__file__).resolve().parent / "test_images"

REQUIRED_IMAGE_FORMATS: Mapping[str, Path] = {
    "jpg": TEST_IMAGE_DIR / "test.jpg",
    "gif": TEST_IMAGE_DIR / "test.gif",
    "png": TEST_IMAGE_DIR / "test.png",
}

BROKEN_SAMPLES_MESSAGE = "Image handler test images are unreadable, the installation is broken"


def probe_all(
    descriptors: Sequence[ImageHandlerDescriptor],
    required_sample_images: Mapping[str, Path],
    host_facts: HostFacts,
    factory: Any,
) -> ImageHandlerDiagnosticsCollection:
    """Determine which of ``descriptors`` are usable on this host.

    Args:
        descriptors: Candidate drivers ordered from worst to best.
        required_sample_images: Image format to sample file; every format must
            decode for a driver to be ready.
        host_facts: Extension and configuration queries.
        factory: Imaging factory with ``is_driver_available`` and
            ``create_driver``.

    Returns:
        One diagnostics entry per descriptor, in input order.

    Raises:
        OSError: A sample image cannot be read. This is an installation
            defect, not a property of any driver.
    """

    samples = {
        image_format: Path(path).read_bytes()
        for image_format, path in required_sample_images.items()
    }

    diagnostics: list[ImageHandlerDiagnostics] = []
    for descriptor in descriptors:
        unsupported_because = _unmet_requirements(descriptor, host_facts, factory)
        if not unsupported_because:
            unsupported_because.extend(
                _find_unsupported_image_formats(descriptor.driver_name, samples, factory)
            )
        is_ready = not unsupported_because
        LOGGER.debug(
            "Image handler %s (%s): %s",
            descriptor.driver_name,
            descriptor.description,
            "ready" if is_ready else "; ".join(unsupported_because),
        )
        diagnostics.append(
            ImageHandlerDiagnostics(
                descriptor=descriptor,
                is_ready=is_ready,
                status_details=tuple(unsupported_because),
            )
        )
    return ImageHandlerDiagnosticsCollection(diagnostics)


def _unmet_requirements(
    descriptor: ImageHandlerDescriptor,
    host_facts: HostFacts,
    factory: Any,
) -> list[str]:
    reasons: list[str] = []
    extension = descriptor.required_extension
    if extension and not host_facts.is_extension_loaded(extension):
        reasons.append(f'Python extension "{extension}" is not loaded.')

    if not factory.is_driver_available(descriptor.driver_name):
        reasons.append(f'Imaging driver "{descriptor.driver_name}" is not available.')

    for key, expected in descriptor.required_configuration.items():
        actual = host_facts.configuration_value(key)
        compared = actual
        # "1" satisfies a "true" expectation
        if expected == "true" and actual == "1":
            compared = "true"
        if compared != expected:
            hint = host_facts.configuration_hint(key, expected)
            reasons.append(
                f'Configuration "{key}" is not set to "{expected}", '
                f'but to "{actual or ""}" instead.\n        {hint}'
            )
    return reasons


def _find_unsupported_image_formats(
    driver_name: str,
    samples: Mapping[str, bytes],
    factory: Any,
) -> list[str]:
    try:
        driver = factory.create_driver(driver_name)
    except Exception as exc:  # noqa: BLE001 - unreadiness is reported, not raised
        return [f'Imaging driver "{driver_name}" could not be created: {exc}']

    reasons: list[str] = []
    for image_format, data in samples.items():
        try:
            driver.load(data)
        except Exception as exc:  # noqa: BLE001 - each format is probed on its own
            reasons.append(f'Image format "{image_format}" not supported: {exc}')
    return reasons


class ImageHandlerService:
    """Probe the configured image handlers on the current host."""

    def __init__(
        self,
        config: Mapping[str, Any] | None = None,
        host_facts: HostFacts | None = None,
        factory: Any | None = None,
        sample_images: Mapping[str, Path] | None = None,
        descriptors: Sequence[ImageHandlerDescriptor] | None = None,
    ) -> None:
        if config is None:
            from config import ConfigController

            config = ConfigController.get_instance().get_config()
        self._config = config
        self._host_facts = host_facts if host_facts is not None else SystemHostFacts()
        self._factory = factory if factory is not None else ImagingFactory()
        self._sample_images = sample_images if sample_images is not None else REQUIRED_IMAGE_FORMATS
        self._descriptors = (
            descriptors if descriptors is not None else descriptors_from_config(config)
        )

    @property
    def descriptors(self) -> Sequence[ImageHandlerDescriptor]:
        return self._descriptors

    def determine_availability(self) -> ImageHandlerDiagnosticsCollection:
        """Probe every configured handler. Results are never cached."""

        return probe_all(
            self._descriptors,
            self._sample_images,
            self._host_facts,
            self._factory,
        )

    def get_available_image_handlers(self) -> list[ImageHandler]:
        return self.determine_availability().available_image_handlers()

    def get_preferred_image_handler(self) -> ImageHandler | None:
        return self.determine_availability().preferred_image_handler()

    def is_driver_enabled_in_configuration(self, driver_name: str) -> bool:
        imaging_cfg = self._config.get("imaging") or {}
        enabled_drivers = imaging_cfg.get("enabled_drivers") or {}
        return bool(enabled_drivers.get(driver_name, False))
