"""Runtime values and the operators the arithmetic/logic instructions apply.

A value is either a :class:`Number` (signed 64-bit integer) or a
:class:`Text`. Operators never mutate their operands; every call returns a
fresh value or raises :class:`~regvm.errors.TypeMismatch`,
:class:`~regvm.errors.DivisionByZero` or :class:`~regvm.errors.ValueTooLarge`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from regvm.errors import DivisionByZero, TypeMismatch, ValueTooLarge

if TYPE_CHECKING:
    from regvm.model import ComparisonOp


I64_MIN = -(1 << 63)
I64_MAX = (1 << 63) - 1

_INT_LITERAL_RE = re.compile(r"([+-]?)(0x[0-9a-f]+|0b[01]+|[0-9]+)")


def wrap_i64(value: int) -> int:
    """Wrap an arbitrary Python int into the signed 64-bit range."""
    value &= 0xFFFFFFFFFFFFFFFF
    if value > I64_MAX:
        value -= 1 << 64
    return value


def parse_int_literal(raw: str) -> int:
    """Parse a decimal, ``0x`` hex or ``0b`` binary literal.

    Case-insensitive, surrounding whitespace ignored, optional sign.
    Raises ``ValueError`` for malformed text or values outside 64 bits.
    """
    text = raw.strip().lower()
    match = _INT_LITERAL_RE.fullmatch(text)
    if not match:
        raise ValueError(f"Invalid integer literal: {raw!r}")
    sign, digits = match.groups()
    if digits.startswith("0x"):
        value = int(digits[2:], 16)
    elif digits.startswith("0b"):
        value = int(digits[2:], 2)
    else:
        value = int(digits, 10)
    if sign == "-":
        value = -value
    if value < I64_MIN or value > I64_MAX:
        raise ValueError(f"Integer literal out of range: {raw!r}")
    return value


@dataclass(frozen=True)
class Number:
    value: int = 0

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Text:
    value: str = ""

    def __str__(self) -> str:
        return self.value


Value = Union[Number, Text]

DEFAULT_VALUE: Value = Number(0)


def add(left: Value, right: Value) -> Value:
    if isinstance(left, Number) and isinstance(right, Number):
        return Number(wrap_i64(left.value + right.value))
    if isinstance(left, Text) and isinstance(right, Text):
        return Text(left.value + right.value)
    raise TypeMismatch("add", left, right)


def sub(left: Value, right: Value) -> Value:
    if isinstance(left, Number) and isinstance(right, Number):
        return Number(wrap_i64(left.value - right.value))
    if isinstance(left, Text) and isinstance(right, Number):
        # Positive counts drop from the front, negative counts from the end.
        count = right.value
        if count >= 0:
            return Text(left.value[count:])
        keep = len(left.value) + count
        return Text(left.value[:keep] if keep > 0 else "")
    raise TypeMismatch("sub", left, right)


def mul(left: Value, right: Value) -> Value:
    if isinstance(left, Number) and isinstance(right, Number):
        return Number(wrap_i64(left.value * right.value))
    if isinstance(left, Text) and isinstance(right, Number):
        if right.value <= 0:
            return Text("")
        try:
            return Text(left.value * right.value)
        except (OverflowError, MemoryError) as exc:
            raise ValueTooLarge("mul", left, right) from exc
    raise TypeMismatch("mul", left, right)


def div(left: Value, right: Value) -> Value:
    if isinstance(left, Number) and isinstance(right, Number):
        # Only strictly positive denominators are accepted.
        if right.value <= 0:
            raise DivisionByZero(left.value, right.value)
        quotient = abs(left.value) // right.value
        return Number(-quotient if left.value < 0 else quotient)
    if isinstance(left, Text) and isinstance(right, Text):
        return Number(len(left.value) - len(right.value))
    raise TypeMismatch("div", left, right)


def bit_and(left: Value, right: Value) -> Value:
    if isinstance(left, Number) and isinstance(right, Number):
        return Number(left.value & right.value)
    raise TypeMismatch("and", left, right)


def bit_or(left: Value, right: Value) -> Value:
    if isinstance(left, Number) and isinstance(right, Number):
        return Number(left.value | right.value)
    raise TypeMismatch("or", left, right)


def bit_xor(left: Value, right: Value) -> Value:
    if isinstance(left, Number) and isinstance(right, Number):
        return Number(left.value ^ right.value)
    raise TypeMismatch("xor", left, right)


def bit_not(operand: Value) -> Value:
    if isinstance(operand, Number):
        return Number(~operand.value)
    raise TypeMismatch("not", operand)


def ordering(left: Value, right: Value) -> int:
    """Return -1, 0 or 1 for same-variant operands."""
    if isinstance(left, Number) and isinstance(right, Number):
        return (left.value > right.value) - (left.value < right.value)
    if isinstance(left, Text) and isinstance(right, Text):
        return (left.value > right.value) - (left.value < right.value)
    raise TypeMismatch("compare", left, right)


def compare(left: Value, right: Value, op: ComparisonOp) -> bool:
    return op.accepts(ordering(left, right))
