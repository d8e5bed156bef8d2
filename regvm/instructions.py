from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from regvm import value as ops
from regvm.errors import (
    CannotSetConstant,
    CannotSetIdentifier,
    InvalidInstruction,
    InvalidMemoryAddress,
    InvalidOperand,
    LabelNotFound,
)
from regvm.model import (
    Add,
    And,
    BinaryInstruction,
    Call,
    Clear,
    Dec,
    Define,
    Div,
    Halt,
    Inc,
    Instruction,
    Jmp,
    Load,
    Mov,
    Mul,
    Not,
    Operand,
    OperandKind,
    Or,
    Pop,
    Program,
    Push,
    Ret,
    Set,
    Store,
    Sub,
    Xor,
)
from regvm.state import ACCUMULATOR, MachineState
from regvm.value import DEFAULT_VALUE, Number, Text, Value, parse_int_literal


@dataclass
class ExecResult:
    next_pc: int | None = None
    halt: bool = False


Executor = Callable[[MachineState, Any, Program], ExecResult]


@dataclass(frozen=True)
class InstructionDef:
    mnemonic: str
    summary: str
    syntax: str
    operands: Tuple[str, ...]  # field names in source order
    instruction_type: Type[Instruction]
    executor: Executor
    optional: Tuple[str, ...] = ()

    @property
    def min_operands(self) -> int:
        return len(self.operands) - len(self.optional)


INSTRUCTION_SET: Dict[str, InstructionDef] = {}
_DEFS_BY_TYPE: Dict[Type[Instruction], InstructionDef] = {}


def register_instruction(defn: InstructionDef) -> None:
    INSTRUCTION_SET[defn.mnemonic.upper()] = defn
    _DEFS_BY_TYPE[defn.instruction_type] = defn


def get_instruction_def(mnemonic: str) -> InstructionDef | None:
    return INSTRUCTION_SET.get(mnemonic.upper())


def get_instruction_defs() -> List[InstructionDef]:
    return list(INSTRUCTION_SET.values())


def execute(state: MachineState, instr: Instruction, program: Program) -> ExecResult:
    defn = _DEFS_BY_TYPE.get(type(instr))
    if defn is None:
        raise InvalidInstruction(f"Unknown instruction: {type(instr).__name__}")
    return defn.executor(state, instr, program)


def _memory_address(op: Operand) -> int:
    try:
        return parse_int_literal(op.bare)
    except ValueError as exc:
        raise InvalidMemoryAddress(f"Invalid address: {op.value!r}") from exc


def _register_address(op: Operand, state: MachineState) -> int:
    held = state.get_reg(op.bare)
    if not isinstance(held, Number):
        raise InvalidMemoryAddress(f"Register '{op.bare}' holds {held!r}, not a memory address")
    return held.value


def _value_of(op: Operand, state: MachineState, program: Program) -> Optional[Value]:
    if op.kind is OperandKind.NUMBER:
        try:
            return Number(parse_int_literal(op.value))
        except ValueError:
            return None
    if op.kind is OperandKind.CONSTANT:
        return program.get_constant(op.value)
    if op.kind in (OperandKind.CHARACTER, OperandKind.TEXT):
        return Text(op.value)
    if op.kind is OperandKind.MEMORY:
        return state.read_mem(_memory_address(op))
    if op.kind is OperandKind.REGISTER:
        if op.indirect:
            return state.read_mem(_register_address(op, state))
        return state.get_reg(op.value)
    return None


def read_operand(op: Operand, state: MachineState, program: Program) -> Value:
    resolved = _value_of(op, state, program)
    if resolved is None:
        raise InvalidOperand(f"Could not resolve value of operand '{op}'")
    return resolved


def _check_assignable(op: Operand) -> None:
    if op.kind in (OperandKind.MEMORY, OperandKind.REGISTER):
        return
    if op.kind is OperandKind.CONSTANT:
        raise CannotSetConstant(op.value)
    if op.kind is OperandKind.IDENTIFIER:
        raise CannotSetIdentifier(op.value)
    raise InvalidOperand(f"Cannot set operand '{op}', invalid type {op.kind.value}")


def _target_address(op: Operand, state: MachineState) -> Optional[int]:
    """Validate a destination and return its memory address, or None for a register."""
    _check_assignable(op)
    if op.kind is OperandKind.MEMORY:
        return state.check_address(_memory_address(op))
    if op.indirect:
        return state.check_address(_register_address(op, state))
    state.get_reg(op.value)
    return None


def _store(op: Operand, address: Optional[int], new_value: Value, state: MachineState) -> None:
    if address is None:
        state.set_reg(op.value, new_value)
    else:
        state.write_mem(address, new_value)


def write_operand(op: Operand, new_value: Value, state: MachineState) -> None:
    _store(op, _target_address(op, state), new_value, state)


def _label_target(op: Operand, program: Program, mnemonic: str) -> int:
    if op.kind is not OperandKind.IDENTIFIER:
        raise InvalidOperand(f"Unsupported operand for {mnemonic}: {op}")
    target = program.get_label(op.value)
    if target is None:
        raise LabelNotFound(op.value)
    return target


def exec_define(state: MachineState, instr: Define, program: Program) -> ExecResult:
    raise InvalidInstruction(f"DEFINE .{instr.name} is only valid at compile time")


def exec_set(state: MachineState, instr: Set, program: Program) -> ExecResult:
    write_operand(instr.dest, read_operand(instr.value, state, program), state)
    return ExecResult()


def exec_load(state: MachineState, instr: Load, program: Program) -> ExecResult:
    if instr.src.kind not in (OperandKind.MEMORY, OperandKind.REGISTER):
        raise InvalidOperand(f"Unsupported operand for LOAD: {instr.src}")
    if instr.dest.kind is not OperandKind.REGISTER:
        raise InvalidOperand(f"LOAD destination must be a register, got {instr.dest}")
    write_operand(instr.dest, read_operand(instr.src, state, program), state)
    return ExecResult()


def exec_store(state: MachineState, instr: Store, program: Program) -> ExecResult:
    if instr.value.kind is not OperandKind.REGISTER:
        raise InvalidOperand(f"STORE value must be a register, got {instr.value}")
    write_operand(instr.dest, read_operand(instr.value, state, program), state)
    return ExecResult()


def exec_clear(state: MachineState, instr: Clear, program: Program) -> ExecResult:
    write_operand(instr.target, DEFAULT_VALUE, state)
    return ExecResult()


def exec_mov(state: MachineState, instr: Mov, program: Program) -> ExecResult:
    write_operand(instr.dest, read_operand(instr.src, state, program), state)
    return ExecResult()


def _binary(
    state: MachineState,
    instr: BinaryInstruction,
    program: Program,
    operator: Callable[[Value, Value], Value],
) -> ExecResult:
    left = read_operand(instr.left, state, program)
    right = read_operand(instr.right, state, program)
    state.set_reg(ACCUMULATOR, operator(left, right))
    return ExecResult()


def exec_add(state: MachineState, instr: Add, program: Program) -> ExecResult:
    return _binary(state, instr, program, ops.add)


def exec_sub(state: MachineState, instr: Sub, program: Program) -> ExecResult:
    return _binary(state, instr, program, ops.sub)


def exec_mul(state: MachineState, instr: Mul, program: Program) -> ExecResult:
    return _binary(state, instr, program, ops.mul)


def exec_div(state: MachineState, instr: Div, program: Program) -> ExecResult:
    return _binary(state, instr, program, ops.div)


def exec_and(state: MachineState, instr: And, program: Program) -> ExecResult:
    return _binary(state, instr, program, ops.bit_and)


def exec_or(state: MachineState, instr: Or, program: Program) -> ExecResult:
    return _binary(state, instr, program, ops.bit_or)


def exec_xor(state: MachineState, instr: Xor, program: Program) -> ExecResult:
    return _binary(state, instr, program, ops.bit_xor)


def exec_not(state: MachineState, instr: Not, program: Program) -> ExecResult:
    operand = read_operand(instr.op, state, program)
    state.set_reg(ACCUMULATOR, ops.bit_not(operand))
    return ExecResult()


def exec_inc(state: MachineState, instr: Inc, program: Program) -> ExecResult:
    current = read_operand(instr.dest, state, program)
    write_operand(instr.dest, ops.add(current, Number(1)), state)
    return ExecResult()


def exec_dec(state: MachineState, instr: Dec, program: Program) -> ExecResult:
    current = read_operand(instr.dest, state, program)
    write_operand(instr.dest, ops.sub(current, Number(1)), state)
    return ExecResult()


def exec_push(state: MachineState, instr: Push, program: Program) -> ExecResult:
    resolved = _value_of(instr.src, state, program)
    state.push(DEFAULT_VALUE if resolved is None else resolved)
    return ExecResult()


def exec_pop(state: MachineState, instr: Pop, program: Program) -> ExecResult:
    if instr.dest is None:
        state.pop()
        return ExecResult()
    address = _target_address(instr.dest, state)
    _store(instr.dest, address, state.pop(), state)
    return ExecResult()


def exec_jmp(state: MachineState, instr: Jmp, program: Program) -> ExecResult:
    target = _label_target(instr.target, program, "JMP")
    guard = instr.comparison
    if guard is not None:
        left = read_operand(guard.left, state, program)
        right = read_operand(guard.right, state, program)
        if not ops.compare(left, right, guard.op):
            return ExecResult()
    return ExecResult(next_pc=target)


def exec_call(state: MachineState, instr: Call, program: Program) -> ExecResult:
    target = _label_target(instr.target, program, "CALL")
    state.push_frame(state.pc)
    return ExecResult(next_pc=target)


def exec_ret(state: MachineState, instr: Ret, program: Program) -> ExecResult:
    # Resume after the CALL, not on it.
    return ExecResult(next_pc=state.pop_frame() + 1)


def exec_halt(state: MachineState, instr: Halt, program: Program) -> ExecResult:
    return ExecResult(halt=True)


register_instruction(
    InstructionDef("DEFINE", "Bind a compile-time constant", "DEFINE .name value", ("name", "value"), Define, exec_define)
)
register_instruction(InstructionDef("SET", "Write a value", "SET dest, value", ("dest", "value"), Set, exec_set))
register_instruction(
    InstructionDef("LOAD", "Load memory or a register into a register", "LOAD src, reg", ("src", "dest"), Load, exec_load)
)
register_instruction(
    InstructionDef("STORE", "Store a register into memory or a register", "STORE reg, dest", ("value", "dest"), Store, exec_store)
)
register_instruction(InstructionDef("CLEAR", "Reset a target to 0", "CLEAR target", ("target",), Clear, exec_clear))
register_instruction(InstructionDef("ADD", "a = left + right", "ADD left, right", ("left", "right"), Add, exec_add))
register_instruction(InstructionDef("SUB", "a = left - right", "SUB left, right", ("left", "right"), Sub, exec_sub))
register_instruction(InstructionDef("MUL", "a = left * right", "MUL left, right", ("left", "right"), Mul, exec_mul))
register_instruction(InstructionDef("DIV", "a = left / right", "DIV left, right", ("left", "right"), Div, exec_div))
register_instruction(InstructionDef("INC", "dest = dest + 1", "INC dest", ("dest",), Inc, exec_inc))
register_instruction(InstructionDef("DEC", "dest = dest - 1", "DEC dest", ("dest",), Dec, exec_dec))
register_instruction(InstructionDef("MOV", "Copy src into dest", "MOV src, dest", ("src", "dest"), Mov, exec_mov))
register_instruction(InstructionDef("PUSH", "Push onto the value stack", "PUSH src", ("src",), Push, exec_push))
register_instruction(
    InstructionDef("POP", "Pop the value stack", "POP [dest]", ("dest",), Pop, exec_pop, optional=("dest",))
)
register_instruction(
    InstructionDef("JMP", "Jump to a label, optionally guarded", "JMP label [left OP right]", ("target",), Jmp, exec_jmp)
)
register_instruction(InstructionDef("CALL", "Call a label", "CALL label", ("target",), Call, exec_call))
register_instruction(InstructionDef("AND", "a = left & right", "AND left, right", ("left", "right"), And, exec_and))
register_instruction(InstructionDef("OR", "a = left | right", "OR left, right", ("left", "right"), Or, exec_or))
register_instruction(InstructionDef("XOR", "a = left ^ right", "XOR left, right", ("left", "right"), Xor, exec_xor))
register_instruction(InstructionDef("NOT", "a = ~op", "NOT op", ("op",), Not, exec_not))
register_instruction(InstructionDef("RET", "Return after the last CALL", "RET", (), Ret, exec_ret))
register_instruction(InstructionDef("HALT", "Stop the machine", "HALT", (), Halt, exec_halt))
