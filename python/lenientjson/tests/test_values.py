import numpy as np
import pytest

from lenientjson.data import dumps
from lenientjson.errors import TypeMismatch
from lenientjson.values import (
    DoubleSource,
    FlexibleList,
    FlexibleNumber,
    FlexibleText,
    IntSource,
    Many,
    Single,
    TextSource,
    TolerantOptional,
    parse_decimal,
)


def test_flexible_text_from_string() -> None:
    for s in ["", "hello", "42", "3.14", "null"]:
        text = FlexibleText.decode(s)
        assert text.source == TextSource(s)
        assert text.as_string == s


def test_flexible_text_from_integer() -> None:
    for i in [0, 7, -13, 2**62, 10**30]:
        text = FlexibleText.decode(i)
        assert text.source == IntSource(i)
        assert text.as_string == str(i)


def test_flexible_text_from_float() -> None:
    text = FlexibleText.decode(2.5)
    assert text.source == DoubleSource(2.5)
    assert text.as_string == "2.5"
    assert FlexibleText.decode(-0.1).as_string == "-0.1"


def test_flexible_text_integral_float_reads_as_integer() -> None:
    text = FlexibleText.decode(3.0)
    assert text.source == IntSource(3)
    assert text.as_string == "3"


def test_flexible_text_from_numpy_scalars() -> None:
    assert FlexibleText.decode(np.int64(5)).as_string == "5"
    assert FlexibleText.decode(np.float32(1.5)).as_string == "1.5"


@pytest.mark.parametrize("value", [None, True, False, {}, {"a": 1}, [1], ["x"]])
def test_flexible_text_rejects_other_shapes(value: object) -> None:
    with pytest.raises(TypeMismatch) as excinfo:
        FlexibleText.decode(value)
    assert excinfo.value.path == "$"
    assert excinfo.value.expected == "string, integer or float"


def test_flexible_text_mismatch_carries_field_path() -> None:
    with pytest.raises(TypeMismatch) as excinfo:
        FlexibleText.decode({"nested": True}, ["$", ".title"])
    assert excinfo.value.field_path == ["$", ".title"]
    assert excinfo.value.path == "$.title"
    assert excinfo.value.actual == "object"
    assert "`$.title`" in str(excinfo.value)


def test_flexible_text_always_encodes_as_string() -> None:
    assert FlexibleText.decode("a").encode() == "a"
    assert FlexibleText.decode(7).encode() == "7"
    assert FlexibleText.decode(0.5).encode() == "0.5"


def test_flexible_number_from_integer() -> None:
    for i in [0, 5, -42, 2**53]:
        number = FlexibleNumber.decode(i)
        assert number.source == IntSource(i)
        assert number.as_int == i
        assert number.as_double == float(i)
        assert number.is_numeric


def test_flexible_number_from_float() -> None:
    for d in [0.5, -2.7, 456.78, 1e-9]:
        number = FlexibleNumber.decode(d)
        assert number.source == DoubleSource(d)
        assert number.as_double == d


def test_flexible_number_truncates_toward_zero() -> None:
    assert FlexibleNumber.decode(2.7).as_int == 2
    assert FlexibleNumber.decode(-2.7).as_int == -2
    assert FlexibleNumber.decode("-9.99").as_int == -9


def test_flexible_number_from_numeric_text() -> None:
    for text, expected in [
        ("42", 42.0),
        ("3.14", 3.14),
        ("-0.5", -0.5),
        ("+7", 7.0),
        (".25", 0.25),
        ("1e3", 1000.0),
        ("456.78", 456.78),
    ]:
        number = FlexibleNumber.decode(text)
        assert number.source == TextSource(text)
        assert number.as_double == expected
        assert number.is_numeric


def test_flexible_number_non_numeric_text_reads_as_zero() -> None:
    # Schema drift hidden behind a zero: `is_numeric` is the only way to tell.
    for text in ["abc", "", " 42", "42 ", "1,5", "inf", "nan", "1e400", "0x10"]:
        number = FlexibleNumber.decode(text)
        assert number.as_double == 0.0
        assert number.as_int == 0
        assert not number.is_numeric


def test_flexible_number_rejects_other_shapes() -> None:
    for value in [None, True, [1], {"n": 1}]:
        with pytest.raises(TypeMismatch):
            FlexibleNumber.decode(value)


def test_flexible_number_encode() -> None:
    encoded = FlexibleNumber.decode(5).encode()
    assert encoded == 5
    assert isinstance(encoded, int)
    assert dumps(FlexibleNumber(IntSource(5))) == b"5"
    assert dumps(FlexibleNumber.decode(-7.0)) == b"-7"

    assert FlexibleNumber.decode(2.5).encode() == 2.5
    # Text keeps its original form.
    assert FlexibleNumber.decode("007").encode() == "007"

    big = 2**60
    encoded_big = FlexibleNumber.decode(big).encode()
    assert encoded_big == big
    assert isinstance(encoded_big, int)
    assert dumps(FlexibleNumber.decode(big)) == str(big).encode()


def test_flexible_number_numeric_protocols() -> None:
    number = FlexibleNumber.decode("12.5")
    assert float(number) == 12.5
    assert int(number) == 12


def test_parse_decimal() -> None:
    assert parse_decimal("10") == 10.0
    assert parse_decimal("1.") == 1.0
    assert parse_decimal("1_000") is None
    assert parse_decimal("١٢") is None


def test_flexible_list_from_single_value() -> None:
    tags = FlexibleList.decode("x")
    assert tags.shape == Single("x")
    assert tags.as_array == ["x"]
    assert len(tags) == 1


def test_flexible_list_from_array_preserves_order() -> None:
    tags = FlexibleList.decode(["x", "y", "z"])
    assert tags.shape == Many(("x", "y", "z"))
    assert tags.as_array == ["x", "y", "z"]
    assert list(tags) == ["x", "y", "z"]
    assert len(tags) == 3


def test_flexible_list_from_empty_array() -> None:
    assert FlexibleList.decode([]).as_array == []


def test_flexible_list_with_element_decoder() -> None:
    values = FlexibleList.decode([1, "a", 2.5], FlexibleText.decode)
    assert [v.as_string for v in values] == ["1", "a", "2.5"]

    single = FlexibleList.decode(9, FlexibleText.decode)
    assert single.as_array == [FlexibleText(IntSource(9))]


def test_flexible_list_from_numpy_array() -> None:
    values = FlexibleList.decode(np.array([1, 2, 3]), FlexibleNumber.decode)
    assert [v.as_int for v in values] == [1, 2, 3]


def test_flexible_list_prefers_array_for_nested_lists() -> None:
    def decode_inner(value: object, field_path: list[str]) -> FlexibleList[object]:
        return FlexibleList.decode(value, None, field_path)

    nested = FlexibleList.decode([["a", "b"], "c"], decode_inner)
    assert isinstance(nested.shape, Many)
    assert [inner.as_array for inner in nested] == [["a", "b"], ["c"]]


def test_flexible_list_mismatch() -> None:
    with pytest.raises(TypeMismatch) as excinfo:
        FlexibleList.decode({"a": 1}, FlexibleText.decode, ["$", ".tags"])
    assert excinfo.value.path == "$.tags"
    assert isinstance(excinfo.value.__cause__, TypeMismatch)


def test_flexible_list_mismatch_reports_failing_element() -> None:
    with pytest.raises(TypeMismatch) as excinfo:
        FlexibleList.decode(["ok", {}], FlexibleText.decode, ["$", ".tags"])
    assert excinfo.value.path == "$.tags"
    cause = excinfo.value.__cause__
    assert isinstance(cause, TypeMismatch)
    assert cause.path == "$.tags[1]"


def test_flexible_list_encode_keeps_shape() -> None:
    assert FlexibleList.single("x").encode() == "x"
    assert FlexibleList.many(["x", "y"]).encode() == ["x", "y"]
    assert FlexibleList.many([FlexibleText.decode(1)]).encode() == ["1"]


def test_flexible_list_content_survives_encode_decode() -> None:
    for value in ["x", ["x"], ["x", "y"]]:
        decoded = FlexibleList.decode(value)
        assert FlexibleList.decode(decoded.encode()).as_array == decoded.as_array


def test_tolerant_optional_from_value() -> None:
    name = TolerantOptional.decode("Ann", FlexibleText.decode)
    assert name.value == FlexibleText(TextSource("Ann"))

    assert TolerantOptional.decode(5).value == 5


def test_tolerant_optional_from_null() -> None:
    assert TolerantOptional.decode(None, FlexibleText.decode).value is None


def test_tolerant_optional_from_wrong_shape() -> None:
    for value in [{}, [], True]:
        assert TolerantOptional.decode(value, FlexibleText.decode).value is None


def test_tolerant_optional_encode() -> None:
    assert TolerantOptional(None).encode() is None
    assert TolerantOptional("a").encode() == "a"
    assert TolerantOptional(FlexibleNumber.decode(3)).encode() == 3
    assert TolerantOptional(FlexibleList.single(FlexibleText.decode(1))).encode() == "1"


def test_wrappers_are_immutable_values() -> None:
    text = FlexibleText.decode(1)
    assert text == FlexibleText.decode(1)
    assert text != FlexibleText.decode("1")
    assert hash(FlexibleList.decode(["a"])) == hash(FlexibleList.many(["a"]))
    with pytest.raises(AttributeError):
        text.source = TextSource("x")  # type: ignore[misc]
