"""Imaging drivers and the factory used to probe them."""

from __future__ import annotations

from dataclasses import dataclass, field
import importlib
import io
import logging
from typing import ClassVar, Mapping, Protocol

LOGGER = logging.getLogger(__name__)


class ImagingDriver(Protocol):
    """Decoder for one imaging backend."""

    def load(self, data: bytes) -> None:
        """Decode ``data`` completely or raise."""


class GdDriver:
    """Pillow backed driver."""

    backend_module: ClassVar[str] = "PIL.Image"

    def load(self, data: bytes) -> None:
        image_module = importlib.import_module(self.backend_module)
        with image_module.open(io.BytesIO(data)) as image:
            image.load()


class GmagickDriver:
    """GraphicsMagick driver through pgmagick."""

    backend_module: ClassVar[str] = "pgmagick"

    def load(self, data: bytes) -> None:
        pgmagick = importlib.import_module(self.backend_module)
        image = pgmagick.Image(pgmagick.Blob(data))
        if image.columns() == 0:
            raise RuntimeError("decoded image has no columns")


class ImagickDriver:
    """ImageMagick driver through Wand."""

    backend_module: ClassVar[str] = "wand.image"

    def load(self, data: bytes) -> None:
        wand_image = importlib.import_module(self.backend_module)
        with wand_image.Image(blob=data):
            pass


class VipsDriver:
    """libvips driver through pyvips."""

    backend_module: ClassVar[str] = "pyvips"

    def load(self, data: bytes) -> None:
        pyvips = importlib.import_module(self.backend_module)
        image = pyvips.Image.new_from_buffer(data, "")
        # Loading is lazy; computing a statistic forces a full decode.
        image.avg()


DRIVERS: Mapping[str, type] = {
    "Gd": GdDriver,
    "Gmagick": GmagickDriver,
    "Imagick": ImagickDriver,
    "Vips": VipsDriver,
}


def normalize_driver_name(name: str) -> str:
    return name[:1].upper() + name[1:]


class ImagingFactory:
    """Creates imaging drivers by name.

    Availability only depends on the backend library being importable; it is
    independent of which drivers are enabled in the settings, so a disabled
    driver can still be probed and then enabled.
    """

    def __init__(self, drivers: Mapping[str, type] | None = None) -> None:
        self._drivers = dict(drivers if drivers is not None else DRIVERS)

    def is_driver_available(self, name: str) -> bool:
        driver_class = self._drivers.get(normalize_driver_name(name))
        if driver_class is None:
            return False
        try:
            importlib.import_module(driver_class.backend_module)
        except (ImportError, OSError) as exc:
            # OSError: bindings present but the native library is missing
            LOGGER.debug("Imaging backend for %s unavailable: %s", name, exc)
            return False
        return True

    def create_driver(self, name: str) -> ImagingDriver:
        driver_class = self._drivers.get(normalize_driver_name(name))
        if driver_class is None:
            raise ValueError(f'Unknown imaging driver "{name}"')
        return driver_class()


_MAGIC_NUMBERS = (
    (b"\xff\xd8\xff", "jpg"),
    (b"GIF87a", "gif"),
    (b"GIF89a", "gif"),
    (b"\x89PNG\r\n\x1a\n", "png"),
)


def sniff_format(data: bytes) -> str | None:
    """Return the image format of ``data`` from its magic number."""

    for magic, image_format in _MAGIC_NUMBERS:
        if data.startswith(magic):
            return image_format
    return None


@dataclass
class FakeImagingDriver:
    """Fake driver that rejects a configured set of formats."""

    name: str
    unsupported_formats: set[str] = field(default_factory=set)

    def load(self, data: bytes) -> None:
        image_format = sniff_format(data)
        if image_format is None:
            raise ValueError("unrecognized image data")
        if image_format in self.unsupported_formats:
            raise RuntimeError(f"{self.name} has no decode delegate for {image_format}")


@dataclass
class FakeImagingFactory:
    """Fake imaging factory for offline diagnostics."""

    available_drivers: set[str] = field(default_factory=set)
    unsupported_formats: Mapping[str, set[str]] = field(default_factory=dict)

    def is_driver_available(self, name: str) -> bool:
        return name in self.available_drivers

    def create_driver(self, name: str) -> ImagingDriver:
        if name not in self.available_drivers:
            raise ValueError(f'Unknown imaging driver "{name}"')
        return FakeImagingDriver(
            name=name,
            unsupported_formats=set(self.unsupported_formats.get(name, set())),
        )
