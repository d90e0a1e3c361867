"""Submitted-form snapshot with accumulating field validation.

Each rule records messages against the field it checks and never stops
the others from running, so a field can collect several errors. Handlers
ask ``valid()`` once all rules have run.
"""

import re
from collections.abc import Mapping
from typing import Any

# Errors that are not about a single input (bad credentials, ...)
GENERIC = "generic"

EMAIL_RX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)


class FormErrors(dict[str, list[str]]):
    """Field name -> error messages, in the order they were added."""

    def add(self, field: str, message: str) -> None:
        self.setdefault(field, []).append(message)

    def get_first(self, field: str) -> str:
        """First message for ``field``, or an empty string."""
        messages = self.get(field)
        return messages[0] if messages else ""


class Form:
    """Form values plus the errors found while validating them."""

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self.values: dict[str, list[str]] = {}
        for key in data or {}:
            # Starlette's FormData is a multi-dict; plain mappings hold one value or a list
            if hasattr(data, "getlist"):
                raw = data.getlist(key)
            else:
                raw = data[key] if isinstance(data[key], list) else [data[key]]
            # Uploaded files are not form values
            self.values[key] = [v for v in raw if isinstance(v, str)]
        self.errors = FormErrors()

    def get(self, field: str) -> str:
        """First submitted value for ``field``, or an empty string."""
        values = self.values.get(field)
        return values[0] if values else ""

    def required(self, *fields: str) -> None:
        for field in fields:
            if not self.get(field).strip():
                self.errors.add(field, "This field cannot be blank")

    def max_length(self, field: str, n: int) -> None:
        value = self.get(field)
        if value and len(value) > n:
            self.errors.add(field, f"This field is too long (maximum is {n} characters)")

    def min_length(self, field: str, n: int) -> None:
        value = self.get(field)
        if value and len(value) < n:
            self.errors.add(field, f"This field is too short (minimum is {n} characters)")

    def matches_pattern(self, field: str, pattern: re.Pattern[str]) -> None:
        value = self.get(field)
        if value and not pattern.match(value):
            self.errors.add(field, "This field is invalid")

    def permitted_values(self, field: str, *allowed: str) -> None:
        value = self.get(field)
        if value and value not in allowed:
            self.errors.add(field, "This field is invalid")

    def valid(self) -> bool:
        return not any(self.errors.values())
