"""Value types for image handler descriptors and their probe results."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ImageHandlerDescriptor:
    """Static declaration of an image driver and its host requirements.

    The same ``driver_name`` may be declared more than once when a driver has
    several installation modes, each with its own requirements.
    """

    driver_name: str
    description: str
    required_extension: str = ""
    required_configuration: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ImageHandler:
    """A usable driver as offered for selection."""

    driver_name: str
    description: str


@dataclass(frozen=True)
class ImageHandlerDiagnostics:
    """Readiness of one descriptor on the current host."""

    descriptor: ImageHandlerDescriptor
    is_ready: bool
    status_details: tuple[str, ...] = ()


class ImageHandlerDiagnosticsCollection:
    """Ordered probe results, one entry per descriptor, worst to best."""

    def __init__(self, items: Iterable[ImageHandlerDiagnostics] = ()) -> None:
        self._items: tuple[ImageHandlerDiagnostics, ...] = tuple(items)

    def __iter__(self) -> Iterator[ImageHandlerDiagnostics]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> ImageHandlerDiagnostics:
        return self._items[index]

    def __repr__(self) -> str:
        return f"ImageHandlerDiagnosticsCollection({list(self._items)!r})"

    def ready_count(self) -> int:
        return sum(1 for item in self._items if item.is_ready)

    def unavailable_count(self) -> int:
        return sum(1 for item in self._items if not item.is_ready)

    def driver_names(self) -> list[str]:
        """Return distinct driver names in first-seen order."""

        return list(dict.fromkeys(item.descriptor.driver_name for item in self._items))

    def is_ready(self, driver_name: str) -> bool:
        """Return True if any entry for ``driver_name`` is ready.

        A driver with two install modes counts as ready when one of them is,
        even if the other is not.
        """

        return any(
            item.descriptor.driver_name == driver_name and item.is_ready
            for item in self._items
        )

    def preferred_driver_name(self) -> str | None:
        """Return the driver name of the last ready entry, if any."""

        ready = [item for item in self._items if item.is_ready]
        if not ready:
            return None
        return ready[-1].descriptor.driver_name

    def available_image_handlers(self) -> list[ImageHandler]:
        """Return one handler per ready driver name, worst to best."""

        handlers: dict[str, ImageHandler] = {}
        for item in self._items:
            name = item.descriptor.driver_name
            if item.is_ready and name not in handlers:
                handlers[name] = ImageHandler(driver_name=name, description=item.descriptor.description)
        return list(handlers.values())

    def preferred_image_handler(self) -> ImageHandler | None:
        preferred = self.preferred_driver_name()
        for handler in self.available_image_handlers():
            if handler.driver_name == preferred:
                return handler
        return None
