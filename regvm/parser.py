from __future__ import annotations

import ast
import re
from typing import List, Optional, Tuple

from regvm.instructions import get_instruction_def
from regvm.model import (
    ADDRESS_MARKER,
    Comparison,
    ComparisonOp,
    Define,
    Jmp,
    Operand,
    OperandKind,
    Statement,
)
from regvm.state import REGISTER_NAMES


class ParseError(Exception):
    def __init__(self, message: str, line_no: int, text: str) -> None:
        super().__init__(message)
        self.message = message
        self.line_no = line_no
        self.text = text

    def __str__(self) -> str:
        return f"line {self.line_no}: {self.message}"


LABEL_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\s*:")
IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
NUMBER_RE = re.compile(r"[+-]?(?:0[xX][0-9A-Fa-f]+|0[bB][01]+|[0-9]+)")

COMMENT_MARKER = ";"
COMPARISON_TOKENS = ("<=", ">=", "!=", "=", "<", ">")


def _strip_comment(line: str) -> str:
    quote: str | None = None
    escaped = False
    for index, ch in enumerate(line):
        if quote:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
            continue
        if ch in ("'", '"'):
            quote = ch
        elif ch == COMMENT_MARKER:
            return line[:index]
    return line


def _split_args(text: str) -> List[str]:
    items: List[str] = []
    current: List[str] = []
    quote: str | None = None
    escaped = False
    for ch in text:
        if quote:
            current.append(ch)
            if escaped:
                escaped = False
                continue
            if ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
            continue
        if ch in ("'", '"'):
            quote = ch
            current.append(ch)
            continue
        if ch == ",":
            items.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    item = "".join(current).strip()
    if item or items:
        items.append(item)
    return items


def _parse_quoted(raw: str, line_no: int, raw_line: str) -> str:
    if len(raw) < 2 or raw[-1] != raw[0]:
        raise ParseError(f"Unterminated literal: {raw}", line_no, raw_line)
    try:
        literal = ast.literal_eval(raw)
    except (SyntaxError, ValueError) as exc:
        raise ParseError(f"Invalid literal: {raw}", line_no, raw_line) from exc
    if not isinstance(literal, str):
        raise ParseError(f"Invalid literal: {raw}", line_no, raw_line)
    return literal


def _parse_operand(token: str, line_no: int, raw_line: str) -> Operand:
    raw = token.strip()
    if not raw:
        raise ParseError("Missing operand", line_no, raw_line)
    if raw[0] == '"':
        return Operand(OperandKind.TEXT, _parse_quoted(raw, line_no, raw_line), raw)
    if raw[0] == "'":
        char = _parse_quoted(raw, line_no, raw_line)
        if len(char) != 1:
            raise ParseError(f"Character literal must hold one character: {raw}", line_no, raw_line)
        return Operand(OperandKind.CHARACTER, char, raw)
    if raw.startswith(ADDRESS_MARKER):
        inner = raw[len(ADDRESS_MARKER):].strip()
        if inner.lower() in REGISTER_NAMES:
            return Operand(OperandKind.REGISTER, ADDRESS_MARKER + inner.lower(), raw)
        if NUMBER_RE.fullmatch(inner):
            return Operand(OperandKind.MEMORY, ADDRESS_MARKER + inner, raw)
        raise ParseError(f"Invalid address: {raw}", line_no, raw_line)
    if raw.lower() in REGISTER_NAMES:
        return Operand(OperandKind.REGISTER, raw.lower(), raw)
    if NUMBER_RE.fullmatch(raw):
        return Operand(OperandKind.NUMBER, raw, raw)
    if raw.startswith(".") and IDENT_RE.fullmatch(raw[1:]):
        return Operand(OperandKind.CONSTANT, raw[1:], raw)
    if IDENT_RE.fullmatch(raw):
        return Operand(OperandKind.IDENTIFIER, raw, raw)
    raise ParseError(f"Invalid operand: {raw}", line_no, raw_line)


def _find_comparison(text: str) -> Optional[Tuple[int, str]]:
    quote: str | None = None
    escaped = False
    index = 0
    while index < len(text):
        ch = text[index]
        if quote:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
            index += 1
            continue
        if ch in ("'", '"'):
            quote = ch
            index += 1
            continue
        for token in COMPARISON_TOKENS:
            if text.startswith(token, index):
                return index, token
        index += 1
    return None


def _parse_comparison(text: str, line_no: int, raw_line: str) -> Comparison:
    found = _find_comparison(text)
    if found is None:
        raise ParseError(f"Invalid jump condition: {text}", line_no, raw_line)
    index, token = found
    left = text[:index].strip()
    right = text[index + len(token):].strip()
    if not left or not right:
        raise ParseError(f"Invalid jump condition: {text}", line_no, raw_line)
    return Comparison(
        left=_parse_operand(left, line_no, raw_line),
        op=ComparisonOp(token),
        right=_parse_operand(right, line_no, raw_line),
    )


def _parse_define(rest: str, line_no: int, raw_line: str) -> Define:
    parts = rest.split(None, 1)
    if len(parts) != 2:
        raise ParseError("Expected DEFINE .name value", line_no, raw_line)
    name, value = parts
    if not (name.startswith(".") and IDENT_RE.fullmatch(name[1:])):
        raise ParseError(f"Invalid constant name: {name}", line_no, raw_line)
    return Define(name=name[1:], value=_parse_operand(value, line_no, raw_line))


def _parse_jump(rest: str, line_no: int, raw_line: str) -> Jmp:
    parts = rest.split(None, 1)
    if not parts:
        raise ParseError("Expected 1 operand for JMP", line_no, raw_line)
    target = parts[0].rstrip(",")
    condition = parts[1].strip().lstrip(",").strip() if len(parts) > 1 else ""
    comparison = _parse_comparison(condition, line_no, raw_line) if condition else None
    return Jmp(target=_parse_operand(target, line_no, raw_line), comparison=comparison)


def parse_program(text: str) -> List[Statement]:
    statements: List[Statement] = []

    for idx, raw_line in enumerate(text.splitlines(), start=1):
        source = raw_line.rstrip("\n")
        working = _strip_comment(raw_line).strip()
        if not working:
            continue

        while True:
            match = LABEL_RE.match(working)
            if not match:
                break
            statements.append(Statement.label(match.group(1), idx, source))
            working = working[match.end():].lstrip()
        if not working:
            continue

        parts = working.split(None, 1)
        mnemonic = parts[0].upper()
        rest = parts[1] if len(parts) > 1 else ""

        if mnemonic == "DEFINE":
            statements.append(Statement.compile_time(_parse_define(rest, idx, source), idx, source))
            continue
        if mnemonic == "JMP":
            statements.append(Statement.instr(_parse_jump(rest, idx, source), idx, source))
            continue

        defn = get_instruction_def(mnemonic)
        if defn is None:
            raise ParseError(f"Unknown instruction: {parts[0]}", idx, source)
        args = _split_args(rest)
        if not defn.min_operands <= len(args) <= len(defn.operands):
            raise ParseError(
                f"Expected {len(defn.operands)} operands for {defn.mnemonic}, got {len(args)}",
                idx,
                source,
            )
        operands = [_parse_operand(arg, idx, source) for arg in args]
        instruction = defn.instruction_type(**dict(zip(defn.operands, operands)))
        statements.append(Statement.instr(instruction, idx, source))

    return statements
