import collections
import dataclasses
import inspect
import types
import typing
from typing import (
    Annotated,
    Any,
    NamedTuple,
)

import numpy as np

from .values import WRAPPER_TYPES


class TypeKind(NamedTuple):
    kind: str


class JsonKey(NamedTuple):
    """
    The key under which a record field appears in the JSON object, when it differs
    from the Python field name, e.g. `Annotated[FlexibleText, JsonKey("displayName")]`.
    """

    name: str


Annotation = TypeKind | JsonKey

Int64 = Annotated[int, TypeKind("Int64")]
Float32 = Annotated[float, TypeKind("Float32")]
Float64 = Annotated[float, TypeKind("Float64")]
Json = Annotated[Any, TypeKind("Json")]

JSON_KEY_ATTR: str = "json_key"


def extract_ndarray_elem_dtype(ndarray_type: Any) -> Any:
    args = typing.get_args(ndarray_type)
    _, dtype_spec = args
    dtype_args = typing.get_args(dtype_spec)
    if not dtype_args:
        raise ValueError(f"Invalid dtype specification: {dtype_spec}")
    return dtype_args[0]


def is_numpy_number_type(t: type) -> bool:
    return isinstance(t, type) and issubclass(t, (np.integer, np.floating))


def is_namedtuple_type(t: type) -> bool:
    return isinstance(t, type) and issubclass(t, tuple) and hasattr(t, "_fields")


def is_struct_type(t: Any) -> bool:
    return isinstance(t, type) and (
        dataclasses.is_dataclass(t) or is_namedtuple_type(t)
    )


def is_wrapper_type(t: Any) -> bool:
    return isinstance(t, type) and t in WRAPPER_TYPES


class DtypeRegistry:
    """
    Registry for NumPy dtypes accepted in annotations.
    Maps NumPy dtypes to their type kind.
    """

    _DTYPE_TO_KIND: dict[Any, str] = {
        np.float32: "Float32",
        np.float64: "Float64",
        np.int32: "Int64",
        np.int64: "Int64",
    }

    @classmethod
    def validate_dtype_and_get_kind(cls, dtype: Any) -> str:
        """
        Validate that the given dtype is supported, and get its kind by dtype.
        """
        if dtype is Any:
            raise TypeError("NDArray must use a concrete numpy dtype, got `Any`.")
        kind = cls._DTYPE_TO_KIND.get(dtype)
        if kind is None:
            raise ValueError(
                f"Unsupported NumPy dtype in NDArray: {dtype}. "
                f"Supported dtypes: {cls._DTYPE_TO_KIND.keys()}"
            )
        return kind


class AnalyzedAnyType(NamedTuple):
    """
    When the type annotation is missing or matches any type.
    """


class AnalyzedBasicType(NamedTuple):
    """
    For types that fit into basic type, and annotated with basic type or Json type.
    """

    kind: str


class AnalyzedListType(NamedTuple):
    """
    Any list type, e.g. list[T], Sequence[T], NDArray[T], etc.
    """

    elem_type: Any


class AnalyzedStructType(NamedTuple):
    """
    Any struct type, e.g. dataclass, NamedTuple, etc.
    """

    struct_type: type


class AnalyzedUnionType(NamedTuple):
    """
    Any union type, e.g. T1 | T2 | ..., etc.
    """

    variant_types: list[Any]


class AnalyzedDictType(NamedTuple):
    """
    Any dict type, e.g. dict[T1, T2], Mapping[T1, T2], etc.
    """

    key_type: Any
    value_type: Any


class AnalyzedWrapperType(NamedTuple):
    """
    One of the lenient wrappers, e.g. FlexibleText, FlexibleList[T], TolerantOptional[T].
    """

    wrapper_type: type
    # The T of FlexibleList[T] / TolerantOptional[T]. Any when not parameterized.
    payload_type: Any


class AnalyzedUnknownType(NamedTuple):
    """
    Any type that is not supported.
    """


AnalyzedTypeVariant = (
    AnalyzedAnyType
    | AnalyzedBasicType
    | AnalyzedListType
    | AnalyzedStructType
    | AnalyzedUnionType
    | AnalyzedDictType
    | AnalyzedWrapperType
    | AnalyzedUnknownType
)


@dataclasses.dataclass
class AnalyzedTypeInfo:
    """
    Analyzed info of a Python type.
    """

    # The type without annotations. e.g. int, list[int], dict[str, int]
    core_type: Any
    # The type without annotations and parameters. e.g. int, list, dict
    base_type: Any
    variant: AnalyzedTypeVariant
    attrs: dict[str, Any] | None
    nullable: bool = False


def analyze_type_info(t: Any) -> AnalyzedTypeInfo:
    """
    Analyze a Python type annotation and extract the information needed to decode JSON into it.
    """

    annotations: tuple[Annotation, ...] = ()
    base_type = None
    type_args: tuple[Any, ...] = ()
    nullable = False
    while True:
        base_type = typing.get_origin(t)
        if base_type is Annotated:
            annotations = t.__metadata__
            t = t.__origin__
        else:
            if base_type is None:
                base_type = t
            else:
                type_args = typing.get_args(t)
            break
    core_type = t

    attrs: dict[str, Any] | None = None
    kind: str | None = None
    for attr in annotations:
        if isinstance(attr, JsonKey):
            if attrs is None:
                attrs = dict()
            attrs[JSON_KEY_ATTR] = attr.name
        elif isinstance(attr, TypeKind):
            kind = attr.kind

    variant: AnalyzedTypeVariant | None = None

    if kind is not None:
        variant = AnalyzedBasicType(kind=kind)
    elif base_type is Any or base_type is inspect.Parameter.empty:
        variant = AnalyzedAnyType()
    elif is_wrapper_type(base_type):
        payload_type = type_args[0] if len(type_args) > 0 else Any
        variant = AnalyzedWrapperType(wrapper_type=base_type, payload_type=payload_type)
    elif is_struct_type(base_type):
        variant = AnalyzedStructType(struct_type=t)
    elif is_numpy_number_type(t):
        kind = DtypeRegistry.validate_dtype_and_get_kind(t)
        variant = AnalyzedBasicType(kind=kind)
    elif base_type is collections.abc.Sequence or base_type is list:
        elem_type = type_args[0] if len(type_args) > 0 else Any
        variant = AnalyzedListType(elem_type=elem_type)
    elif base_type is np.ndarray:
        elem_type = extract_ndarray_elem_dtype(t)
        variant = AnalyzedListType(elem_type=elem_type)
    elif base_type is collections.abc.Mapping or base_type is dict or t is dict:
        key_type = type_args[0] if len(type_args) > 0 else Any
        elem_type = type_args[1] if len(type_args) > 1 else Any
        variant = AnalyzedDictType(key_type=key_type, value_type=elem_type)
    elif base_type in (types.UnionType, typing.Union):
        non_none_types = [arg for arg in type_args if arg not in (None, types.NoneType)]
        if len(non_none_types) == 0:
            return analyze_type_info(None)

        nullable = len(non_none_types) < len(type_args)
        if len(non_none_types) == 1:
            result = analyze_type_info(non_none_types[0])
            result.nullable = nullable
            return result

        variant = AnalyzedUnionType(variant_types=non_none_types)
    else:
        if t is str:
            kind = "Str"
        elif t is bool:
            kind = "Bool"
        elif t is int:
            kind = "Int64"
        elif t is float:
            kind = "Float64"
        elif t is None or t is types.NoneType:
            kind = "Null"

        if kind is None:
            variant = AnalyzedUnknownType()
        else:
            variant = AnalyzedBasicType(kind=kind)

    return AnalyzedTypeInfo(
        core_type=core_type,
        base_type=base_type,
        variant=variant,
        attrs=attrs,
        nullable=nullable,
    )


def struct_field_types(struct_type: type) -> dict[str, Any]:
    """
    Resolve the field annotations of a dataclass or NamedTuple, keeping `Annotated` extras.

    String annotations (e.g. under `from __future__ import annotations`) are evaluated
    in the namespace of the module defining the struct.
    """
    hints = typing.get_type_hints(struct_type, include_extras=True)
    if dataclasses.is_dataclass(struct_type):
        return {
            f.name: hints.get(f.name, Any)
            for f in dataclasses.fields(struct_type)
            if f.init
        }
    if is_namedtuple_type(struct_type):
        return {name: hints.get(name, Any) for name in struct_type._fields}
    raise ValueError(f"Unsupported struct type: {struct_type}")


def type_display_name(type_info: AnalyzedTypeInfo) -> str:
    """Human readable name of the expected JSON shape, for error messages."""
    variant = type_info.variant
    if isinstance(variant, AnalyzedBasicType):
        name = {
            "Str": "string",
            "Bool": "boolean",
            "Int64": "integer",
            "Float32": "number",
            "Float64": "number",
            "Null": "null",
        }.get(variant.kind, variant.kind)
    elif isinstance(variant, AnalyzedListType):
        name = "array"
    elif isinstance(variant, (AnalyzedDictType, AnalyzedStructType)):
        name = "object"
    elif isinstance(variant, AnalyzedUnionType):
        name = " or ".join(
            type_display_name(analyze_type_info(t)) for t in variant.variant_types
        )
    else:
        name = str(type_info.core_type)
    return f"{name} or null" if type_info.nullable else name
