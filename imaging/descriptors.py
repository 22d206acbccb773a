"""Supported image handlers, ordered from least to most preferred."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from imaging.models import ImageHandlerDescriptor

# The last ready entry is the preferred driver.
SUPPORTED_IMAGE_HANDLERS_WORST_TO_BEST: tuple[ImageHandlerDescriptor, ...] = (
    ImageHandlerDescriptor(
        driver_name="Gd",
        description="Pillow - generally slow, not recommended in production",
        required_extension="PIL._imaging",
    ),
    ImageHandlerDescriptor(
        driver_name="Gmagick",
        description="GraphicsMagick via pgmagick",
        required_extension="pgmagick",
    ),
    ImageHandlerDescriptor(
        driver_name="Imagick",
        description="ImageMagick via Wand",
        required_extension="wand",
    ),
    ImageHandlerDescriptor(
        driver_name="Vips",
        description="(API mode) fast and memory efficient, needs pyvips built against libvips",
        required_extension="_libvips",
    ),
    ImageHandlerDescriptor(
        driver_name="Vips",
        description="(ABI mode) fast and memory efficient, needs pyvips and a loadable libvips",
        required_configuration={
            "IMAGING_VIPS_ABI": "true",
            # libvips callbacks run off the main thread in ABI mode
            "VIPS_CONCURRENCY": "1",
        },
    ),
)


def descriptor_from_mapping(entry: Mapping[str, Any]) -> ImageHandlerDescriptor:
    """Build a descriptor from a YAML settings entry."""

    driver_name = entry.get("driver_name")
    if not driver_name:
        raise ValueError(f"Image handler entry without driver_name: {dict(entry)!r}")
    required_configuration = entry.get("required_configuration") or {}
    if not isinstance(required_configuration, Mapping):
        raise ValueError(f"required_configuration of {driver_name} must be a mapping")
    return ImageHandlerDescriptor(
        driver_name=str(driver_name),
        description=str(entry.get("description", "")),
        required_extension=str(entry.get("required_extension") or ""),
        required_configuration={
            str(key): _as_setting_string(value) for key, value in required_configuration.items()
        },
    )


def descriptors_from_config(config: Mapping[str, Any]) -> Sequence[ImageHandlerDescriptor]:
    """Return the configured handler list, or the built-in default.

    ``imaging.supported_handlers_by_preference`` follows the same worst to
    best ordering as the default.
    """

    imaging_cfg = config.get("imaging") or {}
    entries = imaging_cfg.get("supported_handlers_by_preference")
    if not entries:
        return SUPPORTED_IMAGE_HANDLERS_WORST_TO_BEST
    return tuple(descriptor_from_mapping(entry) for entry in entries)


def _as_setting_string(value: Any) -> str:
    # YAML parses `true` to a bool; expectations are compared as strings.
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
