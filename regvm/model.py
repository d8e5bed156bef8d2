from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, Mapping, Optional, Tuple

if TYPE_CHECKING:
    from regvm.value import Value


ADDRESS_MARKER = "%"


class OperandKind(Enum):
    REGISTER = "register"
    MEMORY = "memory"
    NUMBER = "number"
    IDENTIFIER = "identifier"
    CONSTANT = "constant"
    CHARACTER = "character"
    TEXT = "text"


@dataclass(frozen=True)
class Operand:
    kind: OperandKind
    value: str  # register name, address, literal or symbol name
    text: str = ""

    @property
    def indirect(self) -> bool:
        return self.value.startswith(ADDRESS_MARKER)

    @property
    def bare(self) -> str:
        if self.indirect:
            return self.value[len(ADDRESS_MARKER):]
        return self.value

    def __str__(self) -> str:
        return self.text or self.value

    @classmethod
    def register(cls, name: str) -> Operand:
        return cls(OperandKind.REGISTER, name)

    @classmethod
    def memory(cls, address: str) -> Operand:
        return cls(OperandKind.MEMORY, address)

    @classmethod
    def number(cls, literal: str | int) -> Operand:
        return cls(OperandKind.NUMBER, str(literal))

    @classmethod
    def identifier(cls, name: str) -> Operand:
        return cls(OperandKind.IDENTIFIER, name)

    @classmethod
    def constant(cls, name: str) -> Operand:
        return cls(OperandKind.CONSTANT, name)

    @classmethod
    def character(cls, literal: str) -> Operand:
        return cls(OperandKind.CHARACTER, literal)

    @classmethod
    def string(cls, literal: str) -> Operand:
        return cls(OperandKind.TEXT, literal)


class ComparisonOp(Enum):
    EQ = "="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="

    def accepts(self, order: int) -> bool:
        if self is ComparisonOp.EQ:
            return order == 0
        if self is ComparisonOp.NE:
            return order != 0
        if self is ComparisonOp.LT:
            return order < 0
        if self is ComparisonOp.LE:
            return order <= 0
        if self is ComparisonOp.GT:
            return order > 0
        return order >= 0


@dataclass(frozen=True)
class Comparison:
    left: Operand
    op: ComparisonOp
    right: Operand

    def __str__(self) -> str:
        return f"{self.left} {self.op.value} {self.right}"


@dataclass(frozen=True)
class Instruction:
    mnemonic: ClassVar[str] = ""


@dataclass(frozen=True)
class Define(Instruction):
    name: str
    value: Operand
    mnemonic: ClassVar[str] = "DEFINE"


@dataclass(frozen=True)
class Set(Instruction):
    value: Operand
    dest: Operand
    mnemonic: ClassVar[str] = "SET"


@dataclass(frozen=True)
class Load(Instruction):
    src: Operand
    dest: Operand
    mnemonic: ClassVar[str] = "LOAD"


@dataclass(frozen=True)
class Store(Instruction):
    value: Operand
    dest: Operand
    mnemonic: ClassVar[str] = "STORE"


@dataclass(frozen=True)
class Clear(Instruction):
    target: Operand
    mnemonic: ClassVar[str] = "CLEAR"


@dataclass(frozen=True)
class BinaryInstruction(Instruction):
    left: Operand
    right: Operand


@dataclass(frozen=True)
class Add(BinaryInstruction):
    mnemonic: ClassVar[str] = "ADD"


@dataclass(frozen=True)
class Sub(BinaryInstruction):
    mnemonic: ClassVar[str] = "SUB"


@dataclass(frozen=True)
class Mul(BinaryInstruction):
    mnemonic: ClassVar[str] = "MUL"


@dataclass(frozen=True)
class Div(BinaryInstruction):
    mnemonic: ClassVar[str] = "DIV"


@dataclass(frozen=True)
class And(BinaryInstruction):
    mnemonic: ClassVar[str] = "AND"


@dataclass(frozen=True)
class Or(BinaryInstruction):
    mnemonic: ClassVar[str] = "OR"


@dataclass(frozen=True)
class Xor(BinaryInstruction):
    mnemonic: ClassVar[str] = "XOR"


@dataclass(frozen=True)
class Inc(Instruction):
    dest: Operand
    mnemonic: ClassVar[str] = "INC"


@dataclass(frozen=True)
class Dec(Instruction):
    dest: Operand
    mnemonic: ClassVar[str] = "DEC"


@dataclass(frozen=True)
class Not(Instruction):
    op: Operand
    mnemonic: ClassVar[str] = "NOT"


@dataclass(frozen=True)
class Mov(Instruction):
    src: Operand
    dest: Operand
    mnemonic: ClassVar[str] = "MOV"


@dataclass(frozen=True)
class Push(Instruction):
    src: Operand
    mnemonic: ClassVar[str] = "PUSH"


@dataclass(frozen=True)
class Pop(Instruction):
    dest: Optional[Operand] = None
    mnemonic: ClassVar[str] = "POP"


@dataclass(frozen=True)
class Jmp(Instruction):
    target: Operand
    comparison: Optional[Comparison] = None
    mnemonic: ClassVar[str] = "JMP"


@dataclass(frozen=True)
class Call(Instruction):
    target: Operand
    mnemonic: ClassVar[str] = "CALL"


@dataclass(frozen=True)
class Ret(Instruction):
    mnemonic: ClassVar[str] = "RET"


@dataclass(frozen=True)
class Halt(Instruction):
    mnemonic: ClassVar[str] = "HALT"


class StatementKind(Enum):
    LABEL = "label"
    COMPILE_TIME = "compile_time"
    INSTRUCTION = "instruction"


@dataclass(frozen=True)
class Statement:
    kind: StatementKind
    name: Optional[str] = None
    instruction: Optional[Instruction] = None
    line_no: int = 0
    text: str = ""

    @classmethod
    def label(cls, name: str, line_no: int = 0, text: str = "") -> Statement:
        return cls(StatementKind.LABEL, name=name, line_no=line_no, text=text or f"{name}:")

    @classmethod
    def compile_time(cls, instruction: Instruction, line_no: int = 0, text: str = "") -> Statement:
        return cls(StatementKind.COMPILE_TIME, instruction=instruction, line_no=line_no, text=text)

    @classmethod
    def instr(cls, instruction: Instruction, line_no: int = 0, text: str = "") -> Statement:
        return cls(StatementKind.INSTRUCTION, instruction=instruction, line_no=line_no, text=text)

    def describe(self) -> str:
        if self.text:
            return self.text.strip()
        if self.kind is StatementKind.LABEL:
            return f"{self.name}:"
        return repr(self.instruction)


@dataclass(frozen=True)
class Program:
    statements: Tuple[Statement, ...]
    labels: Mapping[str, int] = field(default_factory=dict)
    constants: Mapping[str, Value] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.statements)

    def get_label(self, name: str) -> Optional[int]:
        return self.labels.get(name)

    def get_constant(self, name: str) -> Optional[Value]:
        return self.constants.get(name)
