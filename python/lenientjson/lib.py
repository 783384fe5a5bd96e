"""
Library level functions and states.
"""

import threading
import warnings
from typing import Any, Callable, overload

from . import setting


_settings: setting.Settings | None = None
_settings_fn: Callable[[], setting.Settings] | None = None
_settings_lock: threading.Lock = threading.Lock()


@overload
def settings(fn: Callable[[], setting.Settings]) -> Callable[[], setting.Settings]: ...
@overload
def settings(
    fn: None,
) -> Callable[[Callable[[], setting.Settings]], Callable[[], setting.Settings]]: ...
def settings(fn: Callable[[], setting.Settings] | None = None) -> Any:
    """
    Decorate a function that returns a setting.Settings object.
    It registers the function as the settings provider.
    """

    def _inner(fn: Callable[[], setting.Settings]) -> Callable[[], setting.Settings]:
        global _settings, _settings_fn  # pylint: disable=global-statement
        with _settings_lock:
            if _settings_fn is not None:
                warnings.warn(
                    f"Setting a new settings function will override the previous one {_settings_fn}."
                )
            _settings_fn = fn
            _settings = None
        return fn

    if fn is not None:
        return _inner(fn)
    else:
        return _inner


def init(settings: setting.Settings | None = None) -> None:
    """
    Initialize the lenientjson library.

    If the settings are not provided, they are loaded from the registered settings
    function, or from the environment variables.
    """
    global _settings  # pylint: disable=global-statement
    with _settings_lock:
        _settings = settings if settings is not None else _load_settings()


def get_settings() -> setting.Settings:
    """
    Get the active settings, initializing them lazily.

    Malformed environment variables fall back to default settings with a warning,
    where `init` raises.
    """
    global _settings  # pylint: disable=global-statement
    with _settings_lock:
        if _settings is None:
            try:
                _settings = _load_settings()
            except ValueError as e:
                warnings.warn(f"Ignoring invalid lenientjson settings, using defaults: {e}")
                _settings = setting.Settings()
        return _settings


def reset() -> None:
    """Drop the active settings and the registered settings function."""
    global _settings, _settings_fn  # pylint: disable=global-statement
    with _settings_lock:
        _settings = None
        _settings_fn = None


def _load_settings() -> setting.Settings:
    if _settings_fn is not None:
        return _settings_fn()
    return setting.Settings.from_env()
