"""Render wizard steps on the terminal with rich."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from rich.console import Console
from rich.prompt import Confirm, Prompt

from wizard.forms import ElementType, FormDefinition, FormElement, Page
from wizard.steps import Step

ALERT_STYLES = {
    "alert-primary": "bold",
    "alert-info": "cyan",
    "alert-success": "bold green",
    "alert-warning": "yellow",
    "alert-error": "bold red",
    "alert-default": "dim",
}

Asker = Callable[[FormElement], Any]


def _style_for(element: FormElement) -> str:
    classes = str(element.properties.get("elementClassAttribute", "")).split()
    for css_class in classes:
        if css_class in ALERT_STYLES:
            return ALERT_STYLES[css_class]
    return ""


class ConsoleRenderer:
    """Walk a step's form, prompt for inputs and submit the values.

    ``ask`` receives an input element and returns its raw value; the default
    prompts with rich. Password elements return ``(password, confirmation)``.
    """

    def __init__(
        self,
        console: Console | None = None,
        ask: Asker | None = None,
        confirm_skip: Callable[[Step], bool] | None = None,
    ) -> None:
        self.console = console or Console()
        self.ask = ask or self._prompt
        self.confirm_skip = confirm_skip or self._confirm_skip

    def run(self, step: Step) -> dict[str, Any] | None:
        """Run ``step``; returns the submitted values, or None when skipped."""

        form = step.build_form()
        if step.optional and self.confirm_skip(step):
            notice = form.rendering_options.get("skipStepNotice")
            if notice:
                self.console.print(notice, style="yellow")
            return None

        values: dict[str, Any] = {}
        for page in form.pages:
            self._render_page(page, values)

        errors = form.validate(values)
        while errors:
            for identifier, messages in errors.items():
                element = form.get_element(identifier)
                label = element.label if element is not None and element.label else identifier
                for message in messages:
                    self.console.print(f"{label}: {message}", style="bold red")
                if element is not None:
                    values[identifier] = self.ask(element)
            errors = form.validate(values)

        processed = form.process(values)
        step.post_process_form_values(processed)
        self._run_finishers(form, processed)
        return processed

    def _render_page(self, page: Page, values: dict[str, Any]) -> None:
        header = page.rendering_options.get("header")
        if header:
            self.console.rule(header)
        for element in page.elements:
            self._render_element(element, values)

    def _render_element(self, element: FormElement, values: dict[str, Any]) -> None:
        if element.element_type is ElementType.SECTION:
            if element.label:
                self.console.print(element.label, style="bold underline")
            for child in element.elements:
                self._render_element(child, values)
        elif element.element_type is ElementType.STATIC_TEXT:
            text = element.properties.get("text")
            if text:
                self.console.print(text, style=_style_for(element))
        elif element.element_type is ElementType.HIDDEN_FIELD:
            values[element.identifier] = element.default_value
        else:
            values[element.identifier] = self.ask(element)

    @staticmethod
    def _run_finishers(form: FormDefinition, values: dict[str, Any]) -> None:
        for finisher in form.finishers:
            finisher(values)

    def _confirm_skip(self, step: Step) -> bool:
        return Confirm.ask(f"Skip the optional step [bold]{step.identifier}[/bold]?", console=self.console, default=False)

    def _prompt(self, element: FormElement) -> Any:
        label = element.label or element.identifier
        if element.element_type is ElementType.CHECKBOX:
            return Confirm.ask(label, console=self.console, default=bool(element.default_value))
        if element.element_type is ElementType.SINGLE_SELECT_DROPDOWN:
            options = list(element.properties.get("options", {}))
            answer = Prompt.ask(label, console=self.console, choices=options + [""], default="")
            return answer or None
        if element.element_type is ElementType.PASSWORD_WITH_CONFIRMATION:
            description = element.properties.get("passwordDescription")
            prompt = f"{label} ({description})" if description else label
            password = Prompt.ask(prompt, console=self.console, password=True)
            confirmation = Prompt.ask(f"{label} (confirmation)", console=self.console, password=True)
            return (password, confirmation)
        return Prompt.ask(label, console=self.console, default=element.default_value or "")
