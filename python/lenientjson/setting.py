"""
Settings of the lenientjson library.
"""

import dataclasses
import os
from typing import Any, Callable, Self


_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean value: {value}")


def _load_field(
    target: dict[str, Any],
    name: str,
    env_name: str,
    parse: Callable[[str], Any] | None = None,
) -> None:
    value = os.getenv(env_name)
    if value is None:
        return
    if parse is None:
        target[name] = value
        return
    try:
        target[name] = parse(value)
    except ValueError as e:
        raise ValueError(
            f"failed to parse environment variable {env_name}: {value}"
        ) from e


@dataclasses.dataclass
class Settings:
    """Settings for the lenientjson library."""

    # Log every fallback path (number read as text, null collapsed, ...) at DEBUG level.
    log_fallbacks: bool = False

    @classmethod
    def from_env(cls) -> Self:
        """Load settings from environment variables."""
        kwargs: dict[str, Any] = dict()
        _load_field(
            kwargs, "log_fallbacks", "LENIENTJSON_LOG_FALLBACKS", parse=parse_bool
        )
        return cls(**kwargs)
