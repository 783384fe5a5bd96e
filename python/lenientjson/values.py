"""
Value wrappers that tolerate schema drift in untrusted JSON payloads.

- `FlexibleText`: a string, or a number that should have been a string.
- `FlexibleNumber`: a number, or a string that should have been a number.
- `FlexibleList[T]`: a list of T, or a single T that should have been a list.
- `TolerantOptional[T]`: a T, or anything else (null included) collapsing to None.

Each wrapper holds exactly one variant of a closed set, decoded by probing the
JSON value against each variant in a fixed priority order.
"""

from __future__ import annotations

import dataclasses
import math
import re
from typing import Any, Callable, Generic, Iterator, Sequence, TypeVar

import numpy as np

from . import diagnostics
from .errors import ROOT_FIELD_PATH, DecodeError, TypeMismatch, json_type_name


T = TypeVar("T")

# Decodes a JSON value found at the given field path, raising `DecodeError` on mismatch.
ValueDecoder = Callable[[Any, list[str]], Any]
ValueEncoder = Callable[[Any], Any]

# Largest magnitude below which every integer has an exact float representation.
MAX_EXACT_FLOAT_INT = 2**53

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_DECIMAL_PATTERN = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


@dataclasses.dataclass(frozen=True)
class TextSource:
    value: str


@dataclasses.dataclass(frozen=True)
class IntSource:
    value: int


@dataclasses.dataclass(frozen=True)
class DoubleSource:
    value: float


ScalarSource = TextSource | IntSource | DoubleSource


def probe_text(value: Any) -> TextSource | None:
    if isinstance(value, str):
        return TextSource(value)
    return None


def probe_int(value: Any) -> IntSource | None:
    """
    Accept an integer, or a float holding an integral value within the signed 64-bit range.
    Booleans are never numbers.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, np.integer)):
        return IntSource(int(value))
    if (
        isinstance(value, (float, np.floating))
        and math.isfinite(value)
        and float(value).is_integer()
        and _INT64_MIN <= value <= _INT64_MAX
    ):
        return IntSource(int(value))
    return None


def probe_double(value: Any) -> DoubleSource | None:
    if isinstance(value, (float, np.floating)) and math.isfinite(value):
        return DoubleSource(float(value))
    return None


def _first_match(
    probes: Sequence[Callable[[Any], ScalarSource | None]], value: Any
) -> ScalarSource | None:
    for probe in probes:
        source = probe(value)
        if source is not None:
            return source
    return None


def parse_decimal(text: str) -> float | None:
    """
    Parse a locale-invariant decimal number, e.g. "42", "-3.14", "1e5".

    Returns None for anything else, including surrounding whitespace, "inf", "nan",
    and numbers too large to be finite.
    """
    if _DECIMAL_PATTERN.fullmatch(text) is None:
        return None
    result = float(text)
    if not math.isfinite(result):
        return None
    return result


def _int_to_float(value: int) -> float:
    try:
        return float(value)
    except OverflowError:
        return math.copysign(math.inf, value)


_FLEXIBLE_TEXT_PROBES = (probe_text, probe_int, probe_double)
_FLEXIBLE_NUMBER_PROBES = (probe_int, probe_double, probe_text)


@dataclasses.dataclass(frozen=True)
class FlexibleText:
    """
    A string field that may arrive as a number.

    Always exposed as text through `as_string`, and always encoded back as a JSON string.
    """

    source: ScalarSource

    @property
    def as_string(self) -> str:
        source = self.source
        if isinstance(source, TextSource):
            return source.value
        # Python's float str() is the shortest repr that round-trips, e.g. "2.5", "1e+16".
        return str(source.value)

    def __str__(self) -> str:
        return self.as_string

    @classmethod
    def decode(cls, value: Any, field_path: list[str] | None = None) -> FlexibleText:
        source = _first_match(_FLEXIBLE_TEXT_PROBES, value)
        if source is None:
            raise TypeMismatch("string, integer or float", value, field_path)
        if not isinstance(source, TextSource):
            kind = "integer" if isinstance(source, IntSource) else "float"
            diagnostics.emit("FlexibleText", field_path, f"got {kind} instead of string")
        return cls(source)

    def encode(self) -> str:
        return self.as_string


@dataclasses.dataclass(frozen=True)
class FlexibleNumber:
    """
    A numeric field that may arrive as a string.

    Text that does not parse as a number reads as 0.0; check `is_numeric` to tell
    such a fallback apart from a real zero.
    """

    source: ScalarSource

    @property
    def as_double(self) -> float:
        source = self.source
        if isinstance(source, IntSource):
            return _int_to_float(source.value)
        if isinstance(source, DoubleSource):
            return source.value
        parsed = parse_decimal(source.value)
        return 0.0 if parsed is None else parsed

    @property
    def as_int(self) -> int:
        source = self.source
        if isinstance(source, IntSource):
            return source.value
        return math.trunc(self.as_double)

    @property
    def is_numeric(self) -> bool:
        source = self.source
        if isinstance(source, TextSource):
            return parse_decimal(source.value) is not None
        return True

    def __float__(self) -> float:
        return self.as_double

    def __int__(self) -> int:
        return self.as_int

    @classmethod
    def decode(cls, value: Any, field_path: list[str] | None = None) -> FlexibleNumber:
        source = _first_match(_FLEXIBLE_NUMBER_PROBES, value)
        if source is None:
            raise TypeMismatch("integer, float or numeric string", value, field_path)
        if isinstance(source, TextSource):
            if parse_decimal(source.value) is None:
                message = f"got non-numeric string {source.value!r}, reading it as 0.0"
            else:
                message = "got string instead of integer or float"
            diagnostics.emit("FlexibleNumber", field_path, message)
        return cls(source)

    def encode(self) -> float | int | str:
        source = self.source
        if isinstance(source, TextSource):
            return source.value
        if isinstance(source, IntSource):
            if abs(source.value) <= MAX_EXACT_FLOAT_INT:
                # Goes through the double value, but is written without a trailing ".0".
                return int(float(source.value))
            # Beyond 2**53 a float would lose digits.
            return source.value
        return source.value


@dataclasses.dataclass(frozen=True)
class Single(Generic[T]):
    value: T


@dataclasses.dataclass(frozen=True)
class Many(Generic[T]):
    values: tuple[T, ...]


def _passthrough(value: Any, _field_path: list[str]) -> Any:
    return value


@dataclasses.dataclass(frozen=True)
class FlexibleList(Generic[T]):
    """
    A list field that may arrive as a single bare element.

    `as_array` hides the difference: a single element reads as a one-element list.
    Encoding keeps the shape it was received in.
    """

    shape: Single[T] | Many[T]

    @classmethod
    def single(cls, value: T) -> FlexibleList[T]:
        return cls(Single(value))

    @classmethod
    def many(cls, values: Sequence[T]) -> FlexibleList[T]:
        return cls(Many(tuple(values)))

    @property
    def as_array(self) -> list[T]:
        shape = self.shape
        if isinstance(shape, Single):
            return [shape.value]
        return list(shape.values)

    def __iter__(self) -> Iterator[T]:
        return iter(self.as_array)

    def __len__(self) -> int:
        shape = self.shape
        return 1 if isinstance(shape, Single) else len(shape.values)

    @classmethod
    def decode(
        cls,
        value: Any,
        elem_decoder: ValueDecoder | None = None,
        field_path: list[str] | None = None,
    ) -> FlexibleList[Any]:
        """
        Decode a list of elements first, then a single element.

        The list probe runs first so that an element type which itself accepts lists
        (e.g. a nested FlexibleList) does not swallow the whole array as one element.
        """
        decode_elem = elem_decoder or _passthrough
        path = field_path or [ROOT_FIELD_PATH]

        many_error: DecodeError | None = None
        if isinstance(value, (list, tuple, np.ndarray)):
            items = value.tolist() if isinstance(value, np.ndarray) else value
            try:
                return cls(
                    Many(
                        tuple(
                            decode_elem(item, path + [f"[{i}]"])
                            for i, item in enumerate(items)
                        )
                    )
                )
            except DecodeError as e:
                many_error = e

        try:
            single = decode_elem(value, path)
        except DecodeError as e:
            raise TypeMismatch(
                "an element or a list of elements", value, path
            ) from (many_error or e)
        diagnostics.emit(
            "FlexibleList", path, f"got a single {json_type_name(value)} instead of array"
        )
        return cls(Single(single))

    def encode(self, elem_encoder: ValueEncoder | None = None) -> Any:
        encode_elem = elem_encoder or encode_payload
        shape = self.shape
        if isinstance(shape, Single):
            return encode_elem(shape.value)
        return [encode_elem(v) for v in shape.values]


@dataclasses.dataclass(frozen=True)
class TolerantOptional(Generic[T]):
    """
    A value that insists it's never null. But we know better.

    Any failure to decode the inner value, explicit null included, leaves `value` as
    None instead of failing the enclosing record.
    """

    value: T | None = None

    @classmethod
    def decode(
        cls,
        value: Any,
        inner_decoder: ValueDecoder | None = None,
        field_path: list[str] | None = None,
    ) -> TolerantOptional[Any]:
        decode_inner = inner_decoder or _passthrough
        path = field_path or [ROOT_FIELD_PATH]
        try:
            return cls(decode_inner(value, path))
        except Exception as e:  # pylint: disable=broad-exception-caught
            if value is None:
                message = "insisted it wouldn't be null... but it was"
            else:
                message = f"collapsed to None: {e}"
            diagnostics.emit("TolerantOptional", path, message)
            return cls(None)

    def encode(self, inner_encoder: ValueEncoder | None = None) -> Any:
        if self.value is None:
            return None
        encode_inner = inner_encoder or encode_payload
        return encode_inner(self.value)


WRAPPER_TYPES: tuple[type, ...] = (
    FlexibleText,
    FlexibleNumber,
    FlexibleList,
    TolerantOptional,
)


def encode_payload(value: Any) -> Any:
    """Encode a wrapper payload that is either another wrapper or a plain JSON value."""
    if isinstance(value, (FlexibleText, FlexibleNumber)):
        return value.encode()
    if isinstance(value, (FlexibleList, TolerantOptional)):
        return value.encode(encode_payload)
    if isinstance(value, np.generic):
        return value.item()
    return value
