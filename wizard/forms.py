"""A small form model for setup wizard steps.

A ``FormDefinition`` holds pages, pages hold elements, and ``Section``
elements hold further elements. Only input elements carry values; static
text and sections are for rendering.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from enum import Enum
from typing import Any


class ElementType(str, Enum):
    """Element types understood by the renderers."""

    STATIC_TEXT = "StaticText"
    SECTION = "Section"
    SINGLE_LINE_TEXT = "SingleLineText"
    PASSWORD_WITH_CONFIRMATION = "PasswordWithConfirmation"
    SINGLE_SELECT_DROPDOWN = "SingleSelectDropdown"
    CHECKBOX = "Checkbox"
    HIDDEN_FIELD = "HiddenField"


INPUT_TYPES = frozenset(
    {
        ElementType.SINGLE_LINE_TEXT,
        ElementType.PASSWORD_WITH_CONFIRMATION,
        ElementType.SINGLE_SELECT_DROPDOWN,
        ElementType.CHECKBOX,
        ElementType.HIDDEN_FIELD,
    }
)

CONTAINER_TYPES = frozenset({ElementType.SECTION})

PASSWORD_MISMATCH = "The passwords did not match."


class FormError(Exception):
    """Raised for invalid form definitions."""


class FormValidationError(Exception):
    """Raised when submitted values do not validate."""

    def __init__(self, errors: Mapping[str, list[str]]) -> None:
        self.errors = dict(errors)
        summary = "; ".join(f"{key}: {', '.join(messages)}" for key, messages in self.errors.items())
        super().__init__(f"Form values are invalid ({summary})")


class _Container:
    def __init__(self, form: "FormDefinition") -> None:
        self._form = form
        self.elements: list[FormElement] = []

    def create_element(self, identifier: str, element_type: ElementType | str) -> "FormElement":
        element = FormElement(self._form, identifier, ElementType(element_type))
        self._form._register(element)
        self.elements.append(element)
        return element

    def iter_elements(self) -> Iterator["FormElement"]:
        for element in self.elements:
            yield element
            yield from element.iter_elements()


class FormElement(_Container):
    def __init__(self, form: "FormDefinition", identifier: str, element_type: ElementType) -> None:
        super().__init__(form)
        self.identifier = identifier
        self.element_type = element_type
        self.label = ""
        self.properties: dict[str, Any] = {}
        self.validators: list[Any] = []
        self.default_value: Any = None

    def __repr__(self) -> str:
        return f"FormElement({self.identifier!r}, {self.element_type.value})"

    @property
    def is_input(self) -> bool:
        return self.element_type in INPUT_TYPES

    def create_element(self, identifier: str, element_type: ElementType | str) -> "FormElement":
        if self.element_type not in CONTAINER_TYPES:
            raise FormError(f"{self.element_type.value} element {self.identifier!r} cannot hold elements")
        return super().create_element(identifier, element_type)

    def set_label(self, label: str) -> None:
        self.label = label

    def set_property(self, name: str, value: Any) -> None:
        self.properties[name] = value

    def set_default_value(self, value: Any) -> None:
        self.default_value = value

    def add_validator(self, validator: Any) -> None:
        self.validators.append(validator)


class Page(_Container):
    def __init__(self, form: "FormDefinition", identifier: str) -> None:
        super().__init__(form)
        self.identifier = identifier
        self.rendering_options: dict[str, Any] = {}

    def set_rendering_option(self, name: str, value: Any) -> None:
        self.rendering_options[name] = value


class FormDefinition:
    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        self.pages: list[Page] = []
        self.rendering_options: dict[str, Any] = {}
        self.finishers: list[Callable[[dict[str, Any]], None]] = []
        self._elements_by_identifier: dict[str, FormElement] = {}

    def create_page(self, identifier: str) -> Page:
        page = Page(self, identifier)
        self.pages.append(page)
        return page

    def set_rendering_option(self, name: str, value: Any) -> None:
        self.rendering_options[name] = value

    def add_finisher(self, finisher: Callable[[dict[str, Any]], None]) -> None:
        self.finishers.append(finisher)

    def _register(self, element: FormElement) -> None:
        if element.identifier in self._elements_by_identifier:
            raise FormError(f"Duplicate form element identifier {element.identifier!r}")
        self._elements_by_identifier[element.identifier] = element

    def get_element(self, identifier: str) -> FormElement | None:
        return self._elements_by_identifier.get(identifier)

    def iter_elements(self) -> Iterator[FormElement]:
        for page in self.pages:
            yield from page.iter_elements()

    def input_elements(self) -> list[FormElement]:
        return [element for element in self.iter_elements() if element.is_input]

    def default_values(self) -> dict[str, Any]:
        return {element.identifier: element.default_value for element in self.input_elements()}

    def validate(self, values: Mapping[str, Any]) -> dict[str, list[str]]:
        """Return validation errors by element identifier."""

        errors: dict[str, list[str]] = {}
        for element in self.input_elements():
            value = values.get(element.identifier, element.default_value)
            messages: list[str] = []
            if element.element_type is ElementType.PASSWORD_WITH_CONFIRMATION and isinstance(value, tuple):
                password, confirmation = value
                if password != confirmation:
                    messages.append(PASSWORD_MISMATCH)
                value = password
            for validator in element.validators:
                messages.extend(validator.validate(value))
            if messages:
                errors[element.identifier] = messages
        return errors

    def process(self, values: Mapping[str, Any]) -> dict[str, Any]:
        """Validate ``values`` and return them with defaults filled in.

        Raises:
            FormValidationError: Any element failed validation.
        """

        errors = self.validate(values)
        if errors:
            raise FormValidationError(errors)

        processed = self.default_values()
        for identifier in processed:
            if identifier in values:
                processed[identifier] = values[identifier]
        for element in self.input_elements():
            value = processed[element.identifier]
            if element.element_type is ElementType.PASSWORD_WITH_CONFIRMATION and isinstance(value, tuple):
                processed[element.identifier] = value[0]
        return processed
