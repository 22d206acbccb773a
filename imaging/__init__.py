"""Image handler detection and selection."""

from imaging.descriptors import SUPPORTED_IMAGE_HANDLERS_WORST_TO_BEST
from imaging.models import (
    ImageHandler,
    ImageHandlerDescriptor,
    ImageHandlerDiagnostics,
    ImageHandlerDiagnosticsCollection,
)
from imaging.service import REQUIRED_IMAGE_FORMATS, ImageHandlerService, probe_all

__all__ = [
    "REQUIRED_IMAGE_FORMATS",
    "SUPPORTED_IMAGE_HANDLERS_WORST_TO_BEST",
    "ImageHandler",
    "ImageHandlerDescriptor",
    "ImageHandlerDiagnostics",
    "ImageHandlerDiagnosticsCollection",
    "ImageHandlerService",
    "probe_all",
]
