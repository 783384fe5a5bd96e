"""
Lenient JSON value decoders that tolerate schema drift.
"""

from . import data, diagnostics, lib, setting
from .convert import dump_json_value, load_json_value, make_decoder
from .data import dumps, loads, try_loads
from .diagnostics import Fallback, clear_diagnostics_hook, diagnostics_hook
from .errors import DecodeError, MissingField, TypeMismatch
from .lib import init, settings
from .setting import Settings
from .typing import Float32, Float64, Int64, Json, JsonKey
from .values import (
    DoubleSource,
    FlexibleList,
    FlexibleNumber,
    FlexibleText,
    IntSource,
    Many,
    Single,
    TextSource,
    TolerantOptional,
)

__all__ = [
    # Submodules
    "data",
    "diagnostics",
    "lib",
    "setting",
    # Wrappers
    "FlexibleText",
    "FlexibleNumber",
    "FlexibleList",
    "TolerantOptional",
    "TextSource",
    "IntSource",
    "DoubleSource",
    "Single",
    "Many",
    # Decoding
    "load_json_value",
    "dump_json_value",
    "make_decoder",
    "loads",
    "try_loads",
    "dumps",
    # Errors
    "DecodeError",
    "TypeMismatch",
    "MissingField",
    # Diagnostics
    "Fallback",
    "diagnostics_hook",
    "clear_diagnostics_hook",
    # Settings
    "Settings",
    "init",
    "settings",
    # Typing
    "Int64",
    "Float32",
    "Float64",
    "Json",
    "JsonKey",
]
