"""Static pre-scan that builds the label and compile-time constant tables."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional

from regvm.errors import InvalidInstruction
from regvm.model import Define, Operand, OperandKind, Program, Statement, StatementKind
from regvm.value import Number, Text, Value, parse_int_literal

logger = logging.getLogger(__name__)


def resolve_compile_time(operand: Operand, constants: Mapping[str, Value]) -> Optional[Value]:
    """Resolve an operand whose value is knowable before execution.

    Returns ``None`` for registers, memory cells, label references,
    unparsable numbers and constants not defined yet.
    """
    if operand.kind is OperandKind.NUMBER:
        try:
            return Number(parse_int_literal(operand.value))
        except ValueError:
            return None
    if operand.kind is OperandKind.CONSTANT:
        return constants.get(operand.value)
    if operand.kind in (OperandKind.CHARACTER, OperandKind.TEXT):
        return Text(operand.value)
    return None


def resolve_symbols(statements: Iterable[Statement]) -> Program:
    ordered = tuple(statements)
    labels: Dict[str, int] = {}
    constants: Dict[str, Value] = {}

    for index, stmt in enumerate(ordered):
        if stmt.kind is StatementKind.LABEL:
            if stmt.name in labels:
                logger.debug("label %s redefined at statement %d (was %d)", stmt.name, index, labels[stmt.name])
            labels[stmt.name] = index
        elif stmt.kind is StatementKind.COMPILE_TIME:
            instr = stmt.instruction
            if not isinstance(instr, Define):
                raise InvalidInstruction(
                    f"Only DEFINE may run at compile time, got {type(instr).__name__.upper()}",
                    stmt.line_no,
                    stmt.text,
                )
            value = resolve_compile_time(instr.value, constants)
            if value is None:
                logger.debug("dropping DEFINE %s: %s is not known at compile time", instr.name, instr.value)
                continue
            constants[instr.name] = value

    return Program(
        statements=ordered,
        labels=MappingProxyType(labels),
        constants=MappingProxyType(constants),
    )
