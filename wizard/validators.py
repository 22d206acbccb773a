"""Validators for setup wizard form elements.

Every validator except ``NotEmptyValidator`` accepts empty values, so
optional fields only need ``NotEmptyValidator`` added when they are required.
"""

from __future__ import annotations

from typing import Any

from storage.packages import PACKAGE_KEY_PATTERN


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


class NotEmptyValidator:
    def validate(self, value: Any) -> list[str]:
        if _is_empty(value) or (isinstance(value, str) and not value.strip()):
            return ["This property is required."]
        return []


class StringLengthValidator:
    def __init__(self, minimum: int = 0, maximum: int | None = None) -> None:
        if maximum is not None and maximum < minimum:
            raise ValueError("The maximum is less than the minimum.")
        self.minimum = minimum
        self.maximum = maximum

    def validate(self, value: Any) -> list[str]:
        if _is_empty(value):
            return []
        length = len(str(value))
        if length < self.minimum or (self.maximum is not None and length > self.maximum):
            if self.maximum is None:
                return [f"The length of this text must be at least {self.minimum} characters."]
            return [
                f"The length of this text must be between {self.minimum} and {self.maximum} characters."
            ]
        return []


class UserDoesNotExistValidator:
    def __init__(self, user_repository: Any) -> None:
        self.user_repository = user_repository

    def validate(self, value: Any) -> list[str]:
        if _is_empty(value):
            return []
        if self.user_repository.find_by_username(str(value)) is not None:
            return ["The username is already in use."]
        return []


class PackageKeyValidator:
    def validate(self, value: Any) -> list[str]:
        if _is_empty(value):
            return []
        if not PACKAGE_KEY_PATTERN.match(str(value)):
            return ['The given value is not a valid package key (expected "Vendor.Name").']
        return []
