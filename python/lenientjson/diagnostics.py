"""
Structured diagnostics for the fallback paths taken while decoding.

Nothing is printed by default. Attach a hook with `@diagnostics_hook` to receive
`Fallback` events, or set `LENIENTJSON_LOG_FALLBACKS=1` to log them at DEBUG level.
"""

import dataclasses
import logging
import threading
import warnings
from typing import Any, Callable, overload

from . import lib
from .errors import format_field_path


_logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Fallback:
    """A value was accepted through a fallback path instead of its declared shape."""

    # Name of the wrapper (or record) that took the fallback, e.g. "FlexibleText".
    wrapper: str
    # Joined field path, e.g. "$.items[0].title".
    path: str
    message: str


DiagnosticsHook = Callable[[Fallback], None]

_hook: DiagnosticsHook | None = None
_hook_lock: threading.Lock = threading.Lock()


@overload
def diagnostics_hook(fn: DiagnosticsHook) -> DiagnosticsHook: ...
@overload
def diagnostics_hook(fn: None) -> Callable[[DiagnosticsHook], DiagnosticsHook]: ...
def diagnostics_hook(fn: DiagnosticsHook | None = None) -> Any:
    """
    Decorate a function that receives `Fallback` events.
    It registers the function as the diagnostics hook.
    """

    def _inner(fn: DiagnosticsHook) -> DiagnosticsHook:
        global _hook  # pylint: disable=global-statement
        with _hook_lock:
            if _hook is not None:
                warnings.warn(
                    f"Setting a new diagnostics hook will override the previous one {_hook}."
                )
            _hook = fn
        return fn

    if fn is not None:
        return _inner(fn)
    else:
        return _inner


def clear_diagnostics_hook() -> None:
    global _hook  # pylint: disable=global-statement
    with _hook_lock:
        _hook = None


def emit(wrapper: str, field_path: list[str] | None, message: str) -> None:
    """Report a fallback to the logger (if enabled) and to the attached hook."""
    hook = _hook
    log_fallbacks = lib.get_settings().log_fallbacks
    if hook is None and not log_fallbacks:
        return

    event = Fallback(wrapper=wrapper, path=format_field_path(field_path), message=message)
    if log_fallbacks:
        _logger.debug("[%s] '%s' %s", event.wrapper, event.path, event.message)
    if hook is not None:
        hook(event)
