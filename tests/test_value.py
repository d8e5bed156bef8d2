import dataclasses

import pytest

from regvm.errors import DivisionByZero, TypeMismatch, ValueTooLarge
from regvm.model import ComparisonOp
from regvm.value import (
    DEFAULT_VALUE,
    I64_MAX,
    I64_MIN,
    Number,
    Text,
    add,
    bit_and,
    bit_not,
    bit_or,
    bit_xor,
    compare,
    div,
    mul,
    parse_int_literal,
    sub,
)


def test_default_value_is_number_zero():
    assert DEFAULT_VALUE == Number(0)
    assert Number() == Number(0)


def test_values_are_immutable():
    value = Number(5)
    with pytest.raises(dataclasses.FrozenInstanceError):
        value.value = 6  # type: ignore[misc]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("42", 42),
        ("-42", -42),
        ("0x2a", 42),
        ("0X2A", 42),
        ("0b101010", 42),
        ("0B101010", 42),
        ("  7 ", 7),
        ("-0x10", -16),
        ("9223372036854775807", I64_MAX),
    ],
)
def test_parse_int_literal_accepts_decimal_hex_and_binary(raw, expected):
    assert parse_int_literal(raw) == expected


@pytest.mark.parametrize("raw", ["abc", "0xg", "0b102", "", "1_000", "9223372036854775808"])
def test_parse_int_literal_rejects_malformed_or_oversized(raw):
    with pytest.raises(ValueError):
        parse_int_literal(raw)


def test_add_sums_numbers_and_concatenates_text():
    assert add(Number(-50), Number(100)) == Number(50)
    assert add(Text("abc"), Text("def")) == Text("abcdef")


def test_add_wraps_at_64_bits():
    assert add(Number(I64_MAX), Number(1)) == Number(I64_MIN)


@pytest.mark.parametrize(
    ("left", "right"),
    [(Number(1), Text("a")), (Text("a"), Number(1))],
)
def test_add_rejects_mixed_variants(left, right):
    with pytest.raises(TypeMismatch):
        add(left, right)


@pytest.mark.parametrize(
    ("count", "expected"),
    [
        (0, "hello"),
        (2, "llo"),
        (5, ""),
        (10, ""),
        (-2, "hel"),
        (-5, ""),
        (-10, ""),
    ],
)
def test_sub_drops_characters_from_text(count, expected):
    assert sub(Text("hello"), Number(count)) == Text(expected)


def test_sub_numbers_and_rejects_number_minus_text():
    assert sub(Number(-50), Number(100)) == Number(-150)
    with pytest.raises(TypeMismatch):
        sub(Number(1), Text("a"))
    with pytest.raises(TypeMismatch):
        sub(Text("a"), Text("b"))


@pytest.mark.parametrize(
    ("count", "expected"),
    [(3, "HiHiHi"), (1, "Hi"), (0, ""), (-2, "")],
)
def test_mul_repeats_text(count, expected):
    assert mul(Text("Hi"), Number(count)) == Text(expected)


def test_mul_numbers_and_rejects_number_times_text():
    assert mul(Number(-50), Number(100)) == Number(-5000)
    with pytest.raises(TypeMismatch):
        mul(Number(3), Text("Hi"))


def test_mul_text_by_huge_count_is_a_typed_error():
    with pytest.raises(ValueTooLarge) as exc:
        mul(Text("Hi"), Number(I64_MAX))
    assert exc.value.operation == "mul"


def test_text_str_is_its_content():
    assert str(Text("a b")) == "a b"
    assert str(Number(-3)) == "-3"


@pytest.mark.parametrize(
    ("left", "right", "expected"),
    [(100, 50, 2), (7, 2, 3), (-7, 2, -3), (0, 5, 0)],
)
def test_div_truncates_toward_zero(left, right, expected):
    assert div(Number(left), Number(right)) == Number(expected)


@pytest.mark.parametrize("denominator", [0, -1, -50])
def test_div_rejects_non_positive_denominator(denominator):
    with pytest.raises(DivisionByZero) as exc:
        div(Number(10), Number(denominator))
    assert exc.value.left == 10
    assert exc.value.right == denominator


def test_div_text_gives_length_difference():
    assert div(Text("Hi"), Text("hello")) == Number(-3)
    assert div(Text("hello"), Text("Hi")) == Number(3)
    with pytest.raises(TypeMismatch):
        div(Text("Hi"), Number(2))


def test_bitwise_operators():
    assert bit_and(Number(0b1111), Number(0b0010)) == Number(2)
    assert bit_or(Number(0b1111), Number(0b0010)) == Number(15)
    assert bit_xor(Number(0b1111), Number(0b0010)) == Number(13)
    assert bit_not(Number(0b0010)) == Number(-3)


@pytest.mark.parametrize("operator", [bit_and, bit_or, bit_xor])
def test_bitwise_rejects_text(operator):
    with pytest.raises(TypeMismatch):
        operator(Text("a"), Number(1))


def test_not_rejects_text():
    with pytest.raises(TypeMismatch):
        bit_not(Text("a"))


@pytest.mark.parametrize(
    ("op", "left", "right", "expected"),
    [
        (ComparisonOp.EQ, Number(3), Number(3), True),
        (ComparisonOp.NE, Number(3), Number(3), False),
        (ComparisonOp.LT, Number(2), Number(3), True),
        (ComparisonOp.LE, Number(3), Number(3), True),
        (ComparisonOp.GT, Number(2), Number(3), False),
        (ComparisonOp.GE, Number(4), Number(3), True),
        (ComparisonOp.LT, Text("abc"), Text("abd"), True),
        (ComparisonOp.EQ, Text("abc"), Text("abc"), True),
        (ComparisonOp.GT, Text("b"), Text("abc"), True),
    ],
)
def test_compare_orders_same_variant_values(op, left, right, expected):
    assert compare(left, right, op) is expected


def test_compare_rejects_number_against_text():
    with pytest.raises(TypeMismatch):
        compare(Number(1), Text("1"), ComparisonOp.EQ)


def test_operators_leave_operands_untouched():
    left, right = Text("abc"), Number(1)
    sub(left, right)
    assert left == Text("abc")
    assert right == Number(1)
