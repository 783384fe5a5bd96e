import dataclasses
import logging

import pytest

from lenientjson import lib
from lenientjson.convert import load_json_value
from lenientjson.diagnostics import Fallback, diagnostics_hook
from lenientjson.setting import Settings
from lenientjson.values import (
    FlexibleList,
    FlexibleNumber,
    FlexibleText,
    TolerantOptional,
)


@dataclasses.dataclass
class Record:
    title: FlexibleText
    price: FlexibleNumber
    tags: FlexibleList[str]
    name: TolerantOptional[str]
    rating: TolerantOptional[FlexibleNumber]


def test_no_events_for_declared_shapes() -> None:
    events: list[Fallback] = []
    diagnostics_hook(events.append)

    load_json_value(
        Record,
        {"title": "t", "price": 1.5, "tags": ["a"], "name": "n", "rating": 3},
    )
    assert events == []


def test_fallback_events() -> None:
    events: list[Fallback] = []

    @diagnostics_hook
    def collect(event: Fallback) -> None:
        events.append(event)

    load_json_value(
        Record,
        {"title": 123, "price": "abc", "tags": "a", "name": None},
    )
    assert events == [
        Fallback("FlexibleText", "$.title", "got integer instead of string"),
        Fallback(
            "FlexibleNumber", "$.price", "got non-numeric string 'abc', reading it as 0.0"
        ),
        Fallback("FlexibleList", "$.tags", "got a single string instead of array"),
        Fallback(
            "TolerantOptional", "$.name", "insisted it wouldn't be null... but it was"
        ),
        Fallback("TolerantOptional", "$.rating", "is missing, reading it as None"),
    ]


def test_collapsed_value_event_mentions_cause() -> None:
    events: list[Fallback] = []
    diagnostics_hook(events.append)

    load_json_value(TolerantOptional[str], 5)
    assert len(events) == 1
    assert events[0].path == "$"
    assert events[0].message.startswith("collapsed to None: Type mismatch for `$`")


def test_replacing_hook_warns() -> None:
    diagnostics_hook(lambda _event: None)
    with pytest.warns(UserWarning, match="override the previous one"):
        diagnostics_hook(lambda _event: None)


def test_fallbacks_are_logged_when_enabled(caplog: pytest.LogCaptureFixture) -> None:
    lib.init(Settings(log_fallbacks=True))
    with caplog.at_level(logging.DEBUG, logger="lenientjson.diagnostics"):
        load_json_value(FlexibleNumber, "12")
    assert "[FlexibleNumber] '$' got string instead of integer or float" in caplog.text


def test_fallbacks_are_not_logged_by_default(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="lenientjson.diagnostics"):
        load_json_value(FlexibleNumber, "12")
    assert caplog.text == ""
