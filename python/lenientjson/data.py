"""
Conversions between raw payload bytes, text, and decoded values.
"""

import json
from typing import Any, TypeVar, overload

from .convert import dump_json_value, load_json_value
from .errors import DecodeError


T = TypeVar("T")

DEFAULT_ENCODING = "utf-8"


def to_bytes(text: str, encoding: str = DEFAULT_ENCODING) -> bytes:
    return text.encode(encoding)


def to_text(data: bytes, encoding: str = DEFAULT_ENCODING) -> str:
    """Decode bytes to text, returning an empty string if they are not valid in `encoding`."""
    try:
        return data.decode(encoding)
    except UnicodeDecodeError:
        return ""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a valid JSON value")


def parse_json(data: bytes | str) -> Any:
    """
    Parse a JSON document into a JSON value.

    Raises:
        DecodeError: The payload is not valid JSON. `NaN` and `Infinity` are rejected.
    """
    try:
        return json.loads(data, parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError) as e:
        raise DecodeError(f"Invalid JSON payload: {e}") from e


def as_dict(data: bytes | str) -> dict[str, Any] | None:
    """Parse a JSON object, or return None if the payload is not one."""
    try:
        value = parse_json(data)
    except DecodeError:
        return None
    return value if isinstance(value, dict) else None


@overload
def loads(expected_type: type[T], data: bytes | str) -> T: ...
@overload
def loads(expected_type: Any, data: bytes | str) -> Any: ...
def loads(expected_type: Any, data: bytes | str) -> Any:
    """
    Parse a JSON payload and decode it into `expected_type`.

    Raises:
        DecodeError: The payload is not valid JSON, or does not fit `expected_type`.
    """
    return load_json_value(expected_type, parse_json(data))


@overload
def try_loads(expected_type: type[T], data: bytes | str) -> T | None: ...
@overload
def try_loads(expected_type: Any, data: bytes | str) -> Any | None: ...
def try_loads(expected_type: Any, data: bytes | str) -> Any | None:
    """Like `loads()`, but returns None instead of raising `DecodeError`."""
    try:
        return loads(expected_type, data)
    except DecodeError:
        return None


def dumps(value: Any, encoding: str = DEFAULT_ENCODING) -> bytes:
    """Encode a Python value (records and wrappers included) into a JSON payload."""
    return json.dumps(
        dump_json_value(value), ensure_ascii=False, allow_nan=False
    ).encode(encoding)
