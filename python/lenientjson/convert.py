"""
Utilities to convert between JSON values and Python values.
"""

from __future__ import annotations

import dataclasses
import warnings
from typing import Any, Callable, Mapping, TypeVar, overload

import numpy as np

from . import diagnostics
from .errors import ROOT_FIELD_PATH, DecodeError, MissingField, TypeMismatch
from .typing import (
    JSON_KEY_ATTR,
    AnalyzedAnyType,
    AnalyzedBasicType,
    AnalyzedDictType,
    AnalyzedListType,
    AnalyzedStructType,
    AnalyzedTypeInfo,
    AnalyzedUnionType,
    AnalyzedUnknownType,
    AnalyzedWrapperType,
    analyze_type_info,
    is_namedtuple_type,
    struct_field_types,
    type_display_name,
)
from .values import (
    FlexibleList,
    FlexibleNumber,
    FlexibleText,
    TolerantOptional,
    ValueDecoder,
    ValueEncoder,
    probe_double,
    probe_int,
    probe_text,
)


T = TypeVar("T")


class ChildFieldPath:
    """Context manager to append a field to field_path on enter and pop it on exit."""

    _field_path: list[str]
    _field_name: str

    def __init__(self, field_path: list[str], field_name: str):
        self._field_path: list[str] = field_path
        self._field_name = field_name

    def __enter__(self) -> ChildFieldPath:
        self._field_path.append(self._field_name)
        return self

    def __exit__(self, _exc_type: Any, _exc_val: Any, _exc_tb: Any) -> None:
        self._field_path.pop()


def _cast_number(
    dst_core_type: Any,
    number: int | float,
    expected: str,
    value: Any,
    field_path: list[str],
) -> Any:
    """Convert a decoded number to the field's type, rejecting numbers out of its range."""
    if isinstance(dst_core_type, type) and issubclass(
        dst_core_type, (np.integer, np.floating)
    ):
        if issubclass(dst_core_type, np.integer):
            info = np.iinfo(dst_core_type)
            lower, upper = int(info.min), int(info.max)
        else:
            finfo = np.finfo(dst_core_type)
            lower, upper = float(finfo.min), float(finfo.max)
        if not lower <= number <= upper:
            raise TypeMismatch(
                f"{expected} within {dst_core_type.__name__} range", value, field_path
            )
    try:
        return dst_core_type(number)
    except OverflowError as e:
        raise TypeMismatch(expected, value, field_path) from e


def _make_scalar_decoder(
    type_info: AnalyzedTypeInfo, kind: str
) -> ValueDecoder | None:
    expected = type_display_name(type_info)
    dst_core_type = type_info.core_type

    if kind == "Str":

        def decode_str(value: Any, field_path: list[str]) -> Any:
            source = probe_text(value)
            if source is None:
                raise TypeMismatch(expected, value, field_path)
            return source.value

        return decode_str

    if kind == "Bool":

        def decode_bool(value: Any, field_path: list[str]) -> Any:
            if not isinstance(value, (bool, np.bool_)):
                raise TypeMismatch(expected, value, field_path)
            return bool(value)

        return decode_bool

    if kind == "Int64":

        def decode_int(value: Any, field_path: list[str]) -> Any:
            source = probe_int(value)
            if source is None:
                raise TypeMismatch(expected, value, field_path)
            return _cast_number(dst_core_type, source.value, expected, value, field_path)

        return decode_int

    if kind in ("Float32", "Float64"):

        def decode_float(value: Any, field_path: list[str]) -> Any:
            source = probe_double(value) or probe_int(value)
            if source is None:
                raise TypeMismatch(expected, value, field_path)
            return _cast_number(dst_core_type, source.value, expected, value, field_path)

        return decode_float

    if kind == "Null":

        def decode_null(value: Any, field_path: list[str]) -> Any:
            if value is not None:
                raise TypeMismatch(expected, value, field_path)
            return None

        return decode_null

    return None


def _make_wrapper_decoder(
    field_path: list[str], variant: AnalyzedWrapperType
) -> ValueDecoder:
    wrapper_type = variant.wrapper_type

    if wrapper_type is FlexibleText:
        return FlexibleText.decode
    if wrapper_type is FlexibleNumber:
        return FlexibleNumber.decode

    if wrapper_type is FlexibleList:
        with ChildFieldPath(field_path, "[*]"):
            elem_decoder = make_json_value_decoder(
                field_path, analyze_type_info(variant.payload_type)
            )
        return lambda value, path: FlexibleList.decode(value, elem_decoder, path)

    if wrapper_type is TolerantOptional:
        inner_decoder = make_json_value_decoder(
            field_path, analyze_type_info(variant.payload_type)
        )
        return lambda value, path: TolerantOptional.decode(value, inner_decoder, path)

    raise ValueError(f"Unsupported wrapper type: {wrapper_type}")


def make_json_value_decoder(
    field_path: list[str],
    dst_type_info: AnalyzedTypeInfo,
) -> ValueDecoder:
    """
    Make a decoder from a JSON value to a Python value.

    Args:
        field_path: The path to the field being built. For error messages on unsupported types.
        dst_type_info: The analyzed type annotation of the Python value.

    Returns:
        A decoder taking the JSON value and its runtime field path. It raises `DecodeError`
        when the value does not fit the declared type.
    """
    decoder = _make_non_null_decoder(field_path, dst_type_info)
    if not dst_type_info.nullable:
        return decoder

    def decode_nullable(value: Any, path: list[str]) -> Any:
        if value is None:
            return None
        return decoder(value, path)

    return decode_nullable


def _make_non_null_decoder(
    field_path: list[str],
    dst_type_info: AnalyzedTypeInfo,
) -> ValueDecoder:
    dst_type_variant = dst_type_info.variant

    if isinstance(dst_type_variant, AnalyzedUnknownType):
        raise ValueError(
            f"Type mismatch for `{''.join(field_path)}`: "
            f"declared `{dst_type_info.core_type}`, an unsupported type"
        )

    if isinstance(dst_type_variant, AnalyzedAnyType):
        return lambda value, _path: value

    if isinstance(dst_type_variant, AnalyzedWrapperType):
        return _make_wrapper_decoder(field_path, dst_type_variant)

    if isinstance(dst_type_variant, AnalyzedStructType):
        return make_json_struct_decoder(field_path, dst_type_info)

    if isinstance(dst_type_variant, AnalyzedListType):
        expected = type_display_name(dst_type_info)
        with ChildFieldPath(field_path, "[*]"):
            elem_decoder = make_json_value_decoder(
                field_path, analyze_type_info(dst_type_variant.elem_type)
            )

        if dst_type_info.base_type is np.ndarray:
            dtype = dst_type_variant.elem_type

            def decode_ndarray(value: Any, path: list[str]) -> Any:
                if not isinstance(value, (list, tuple, np.ndarray)):
                    raise TypeMismatch(expected, value, path)
                return np.array(
                    [elem_decoder(v, path + [f"[{i}]"]) for i, v in enumerate(value)],
                    dtype=dtype,
                )

            return decode_ndarray

        def decode_list(value: Any, path: list[str]) -> Any:
            if not isinstance(value, (list, tuple, np.ndarray)):
                raise TypeMismatch(expected, value, path)
            result = []
            for i, v in enumerate(value):
                with ChildFieldPath(path, f"[{i}]"):
                    result.append(elem_decoder(v, path))
            return result

        return decode_list

    if isinstance(dst_type_variant, AnalyzedDictType):
        expected = type_display_name(dst_type_info)
        key_type_info = analyze_type_info(dst_type_variant.key_type)
        if not (
            isinstance(key_type_info.variant, AnalyzedAnyType)
            or key_type_info.core_type is str
        ):
            raise ValueError(
                f"Type mismatch for `{''.join(field_path)}`: "
                f"declared `{dst_type_info.core_type}`, JSON object keys are always strings"
            )
        with ChildFieldPath(field_path, ".*"):
            value_decoder = make_json_value_decoder(
                field_path, analyze_type_info(dst_type_variant.value_type)
            )

        def decode_dict(value: Any, path: list[str]) -> Any:
            if not isinstance(value, Mapping):
                raise TypeMismatch(expected, value, path)
            result = {}
            for k, v in value.items():
                with ChildFieldPath(path, f".{k}"):
                    result[k] = value_decoder(v, path)
            return result

        return decode_dict

    if isinstance(dst_type_variant, AnalyzedUnionType):
        expected = type_display_name(dst_type_info)
        decoders = []
        for i, variant_type in enumerate(dst_type_variant.variant_types):
            with ChildFieldPath(field_path, f"[{i}]"):
                decoders.append(
                    make_json_value_decoder(field_path, analyze_type_info(variant_type))
                )

        def decode_union(value: Any, path: list[str]) -> Any:
            for decoder in decoders:
                try:
                    return decoder(value, path)
                except DecodeError:
                    continue
            raise TypeMismatch(expected, value, path)

        return decode_union

    if isinstance(dst_type_variant, AnalyzedBasicType):
        if dst_type_variant.kind == "Json":
            return lambda value, _path: value
        scalar_decoder = _make_scalar_decoder(dst_type_info, dst_type_variant.kind)
        if scalar_decoder is not None:
            return scalar_decoder

    raise ValueError(
        f"Type mismatch for `{''.join(field_path)}`: "
        f"declared `{dst_type_info.core_type}`, an unsupported type"
    )


def _get_auto_default_for_type(
    type_info: AnalyzedTypeInfo,
) -> tuple[Any, bool]:
    """
    Get an auto-default value for a type annotation if it's safe to do so.

    Returns:
        A tuple of (default_value, is_supported) where:
        - default_value: The default value if auto-defaulting is supported
        - is_supported: True if auto-defaulting is supported for this type
    """
    # Case 1: Nullable types (Optional[T] or T | None)
    if type_info.nullable:
        return None, True

    # Case 2: List or dict types
    if isinstance(type_info.variant, AnalyzedListType):
        return [], True
    elif isinstance(type_info.variant, AnalyzedDictType):
        return {}, True

    return None, False


def _struct_field_has_default(struct_type: type, name: str) -> bool:
    if dataclasses.is_dataclass(struct_type):
        field = struct_type.__dataclass_fields__[name]
        return (
            field.default is not dataclasses.MISSING
            or field.default_factory is not dataclasses.MISSING
        )
    return name in getattr(struct_type, "_field_defaults", {})


_OMIT = object()


def make_json_struct_decoder(
    field_path: list[str],
    dst_type_info: AnalyzedTypeInfo,
) -> ValueDecoder:
    """Make a decoder from a JSON object to a dataclass or NamedTuple."""

    dst_type_variant = dst_type_info.variant
    if not isinstance(dst_type_variant, AnalyzedStructType):
        raise ValueError(
            f"Type mismatch for `{''.join(field_path)}`: "
            f"declared `{dst_type_info.core_type}`, a dataclass or NamedTuple expected"
        )
    dst_struct_type = dst_type_variant.struct_type
    struct_name = dst_struct_type.__name__

    def make_missing_handler(
        name: str, type_info: AnalyzedTypeInfo
    ) -> Callable[[list[str]], Any]:
        if _struct_field_has_default(dst_struct_type, name):
            return lambda _path: _OMIT

        variant = type_info.variant
        if (
            isinstance(variant, AnalyzedWrapperType)
            and variant.wrapper_type is TolerantOptional
        ):

            def absent_tolerant(path: list[str]) -> Any:
                diagnostics.emit("TolerantOptional", path, "is missing, reading it as None")
                return TolerantOptional(None)

            return absent_tolerant

        auto_default, is_supported = _get_auto_default_for_type(type_info)
        if is_supported:
            if type_info.nullable:
                return lambda _path: None

            def auto_default_value(path: list[str]) -> Any:
                warnings.warn(
                    f"Field '{name}' (type {type_info.core_type}) without default value is missing in input: "
                    f"{''.join(path)}. Auto-assigning default value: {auto_default}",
                    UserWarning,
                    stacklevel=4,
                )
                return type(auto_default)()

            return auto_default_value

        def missing(path: list[str]) -> Any:
            raise MissingField(name, path)

        return missing

    field_decoders = []
    for name, annotation in struct_field_types(dst_struct_type).items():
        type_info = analyze_type_info(annotation)
        json_key = (type_info.attrs or {}).get(JSON_KEY_ATTR, name)
        with ChildFieldPath(field_path, f".{json_key}"):
            field_decoders.append(
                (
                    name,
                    json_key,
                    make_json_value_decoder(field_path, type_info),
                    make_missing_handler(name, type_info),
                )
            )

    def decode_struct(value: Any, path: list[str]) -> Any:
        if not isinstance(value, Mapping):
            raise TypeMismatch(f"object for {struct_name}", value, path)
        kwargs: dict[str, Any] = {}
        for name, json_key, decoder, on_missing in field_decoders:
            with ChildFieldPath(path, f".{json_key}"):
                if json_key in value:
                    field_value = decoder(value[json_key], path)
                else:
                    field_value = on_missing(path)
            if field_value is not _OMIT:
                kwargs[name] = field_value
        return dst_struct_type(**kwargs)

    return decode_struct


def make_json_value_encoder(type_info: AnalyzedTypeInfo) -> ValueEncoder:
    """
    Create an encoder closure for a specific type.
    """
    variant = type_info.variant

    if isinstance(variant, AnalyzedUnknownType):
        raise ValueError(f"Type annotation `{type_info.core_type}` is unsupported")

    if isinstance(variant, AnalyzedWrapperType):
        if variant.wrapper_type in (FlexibleText, FlexibleNumber):
            return lambda value: None if value is None else value.encode()
        payload_encoder = make_json_value_encoder(analyze_type_info(variant.payload_type))
        return lambda value: None if value is None else value.encode(payload_encoder)

    if isinstance(variant, AnalyzedListType):
        elem_encoder = make_json_value_encoder(analyze_type_info(variant.elem_type))

        def encode_list(value: Any) -> Any:
            return None if value is None else [elem_encoder(v) for v in value]

        return encode_list

    if isinstance(variant, AnalyzedDictType):
        value_encoder = make_json_value_encoder(analyze_type_info(variant.value_type))

        def encode_dict(value: Any) -> Any:
            if value is None:
                return None
            return {k: value_encoder(v) for k, v in value.items()}

        return encode_dict

    if isinstance(variant, AnalyzedStructType):
        field_encoders = []
        for name, annotation in struct_field_types(variant.struct_type).items():
            field_type_info = analyze_type_info(annotation)
            field_encoders.append(
                (
                    name,
                    (field_type_info.attrs or {}).get(JSON_KEY_ATTR, name),
                    make_json_value_encoder(field_type_info),
                )
            )

        def encode_struct(value: Any) -> Any:
            if value is None:
                return None
            result = {}
            for name, json_key, encoder in field_encoders:
                field_value = getattr(value, name)
                # Absent optionals are left out, TolerantOptional(None) still encodes null.
                if field_value is None:
                    continue
                result[json_key] = encoder(field_value)
            return result

        return encode_struct

    return dump_json_value


def dump_json_value(v: Any) -> Any:
    """Recursively dump a Python value into a JSON value."""
    if v is None:
        return None
    elif isinstance(v, (FlexibleText, FlexibleNumber)):
        return v.encode()
    elif isinstance(v, (FlexibleList, TolerantOptional)):
        return v.encode(dump_json_value)
    elif dataclasses.is_dataclass(v) and not isinstance(v, type):
        return make_json_value_encoder(analyze_type_info(type(v)))(v)
    elif is_namedtuple_type(type(v)):
        return make_json_value_encoder(analyze_type_info(type(v)))(v)
    elif isinstance(v, (list, tuple)):
        return [dump_json_value(item) for item in v]
    elif isinstance(v, np.ndarray):
        return v.tolist()
    elif isinstance(v, np.generic):
        return v.item()
    elif isinstance(v, dict):
        return {k: dump_json_value(val) for k, val in v.items()}
    return v


def make_decoder(expected_type: type[T] | Any) -> Callable[[Any], T]:
    """
    Make a reusable decoder from a JSON value to `expected_type`.

    Field paths in errors start at `$`.
    """
    decoder = make_json_value_decoder(
        [ROOT_FIELD_PATH], analyze_type_info(expected_type)
    )
    return lambda value: decoder(value, [ROOT_FIELD_PATH])


@overload
def load_json_value(expected_type: type[T], v: Any) -> T: ...
@overload
def load_json_value(expected_type: Any, v: Any) -> Any: ...
def load_json_value(expected_type: Any, v: Any) -> Any:
    """Decode a JSON value (as produced by `json.loads()`) into `expected_type`.

    Args:
        expected_type: The Python type annotation to decode to.
        v: The JSON value.

    Returns:
        A Python object of `expected_type`.

    Raises:
        DecodeError: The value does not fit `expected_type`.
    """
    return make_decoder(expected_type)(v)
