"""
Errors raised while decoding JSON values.
"""

from typing import Any


ROOT_FIELD_PATH: str = "$"


def format_field_path(field_path: list[str] | None) -> str:
    if not field_path:
        return ROOT_FIELD_PATH
    return "".join(field_path)


def json_type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


class DecodeError(ValueError):
    """Base exception for a JSON value that cannot be decoded."""

    field_path: list[str]

    def __init__(self, message: str, field_path: list[str] | None = None):
        self.field_path = list(field_path) if field_path else [ROOT_FIELD_PATH]
        super().__init__(message)

    @property
    def path(self) -> str:
        return format_field_path(self.field_path)


class TypeMismatch(DecodeError):
    """Exception raised when none of the shape probes accepts a value."""

    def __init__(self, expected: str, value: Any, field_path: list[str] | None = None):
        self.expected = expected
        self.actual = json_type_name(value)
        path = format_field_path(field_path)
        super().__init__(
            f"Type mismatch for `{path}`: expected {expected}, got {self.actual}",
            field_path,
        )


class MissingField(DecodeError):
    """Exception raised when a required record field is absent."""

    def __init__(self, name: str, field_path: list[str] | None = None):
        self.name = name
        super().__init__(
            f"Field '{name}' without default value is missing in input: "
            f"{format_field_path(field_path)}",
            field_path,
        )
