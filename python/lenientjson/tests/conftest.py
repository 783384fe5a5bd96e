import typing

import pytest

from lenientjson import diagnostics, lib


@pytest.fixture(autouse=True)
def _lenientjson_state_fixture(
    monkeypatch: pytest.MonkeyPatch,
) -> typing.Generator[None, None, None]:
    """Start every test from default settings and without a diagnostics hook."""
    monkeypatch.delenv("LENIENTJSON_LOG_FALLBACKS", raising=False)
    lib.reset()
    diagnostics.clear_diagnostics_hook()

    yield

    lib.reset()
    diagnostics.clear_diagnostics_hook()
