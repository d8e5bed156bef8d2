from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

from regvm.errors import InvalidMemoryAddress, InvalidRegister, StackUnderflow
from regvm.value import DEFAULT_VALUE, Text, Value


RAM_SLOTS = 256

ACCUMULATOR = "a"

REGISTER_NAMES = (
    "a",
    "f",
    "r0",
    "r1",
    "r2",
    "r3",
    "r4",
    "r5",
    "r6",
    "r7",
)


def _show(value: Value) -> str:
    return repr(value.value) if isinstance(value, Text) else str(value)


@dataclass(frozen=True)
class StateSnapshot:
    registers: Mapping[str, Value]
    memory: Tuple[Value, ...]
    stack: Tuple[Value, ...]
    call_stack: Tuple[int, ...]
    pc: int = 0

    def non_default_memory(self) -> List[Tuple[int, Value]]:
        return [(addr, value) for addr, value in enumerate(self.memory) if value != DEFAULT_VALUE]

    def format(self) -> str:
        lines = [f"pc: {self.pc}", "registers:"]
        for name in REGISTER_NAMES:
            lines.append(f"  {name:>2} = {_show(self.registers[name])}")
        lines.append("memory:")
        touched = self.non_default_memory()
        if not touched:
            lines.append("  (all zero)")
        for addr, value in touched:
            lines.append(f"  [0x{addr:02X}] = {_show(value)}")
        lines.append("stack: [" + ", ".join(_show(value) for value in self.stack) + "]")
        lines.append("call stack: [" + ", ".join(str(pc) for pc in self.call_stack) + "]")
        return "\n".join(lines)


@dataclass
class MachineState:
    memory_size: int = RAM_SLOTS
    registers: Dict[str, Value] = field(default_factory=dict)
    memory: List[Value] = field(default_factory=list)
    stack: List[Value] = field(default_factory=list)
    call_stack: List[int] = field(default_factory=list)
    pc: int = 0
    running: bool = True

    def __post_init__(self) -> None:
        if self.memory_size <= 0:
            raise ValueError(f"memory_size must be positive, got {self.memory_size}")
        if not self.registers or not self.memory:
            self.reset()

    def reset(self) -> None:
        self.registers = {name: DEFAULT_VALUE for name in REGISTER_NAMES}
        self.memory = [DEFAULT_VALUE] * self.memory_size
        self.stack = []
        self.call_stack = []
        self.pc = 0
        self.running = True

    def _register_key(self, name: str) -> str:
        key = name.lower()
        if key not in self.registers:
            raise InvalidRegister(name)
        return key

    def get_reg(self, name: str) -> Value:
        return self.registers[self._register_key(name)]

    def set_reg(self, name: str, value: Value) -> None:
        self.registers[self._register_key(name)] = value

    def check_address(self, addr: int) -> int:
        if addr < 0:
            raise InvalidMemoryAddress(f"Negative memory address {addr}")
        if addr >= self.memory_size:
            raise InvalidMemoryAddress(f"Address '{addr}' out of range")
        return addr

    def read_mem(self, addr: int) -> Value:
        return self.memory[self.check_address(addr)]

    def write_mem(self, addr: int, value: Value) -> None:
        self.memory[self.check_address(addr)] = value

    def push(self, value: Value) -> None:
        self.stack.append(value)

    def pop(self) -> Value:
        if not self.stack:
            raise StackUnderflow("Cannot pop from an empty stack")
        return self.stack.pop()

    def push_frame(self, pc: int) -> None:
        self.call_stack.append(pc)

    def pop_frame(self) -> int:
        if not self.call_stack:
            raise StackUnderflow("Cannot return from a function since the call stack is empty")
        return self.call_stack.pop()

    def snapshot(self) -> StateSnapshot:
        return StateSnapshot(
            registers=MappingProxyType(dict(self.registers)),
            memory=tuple(self.memory),
            stack=tuple(self.stack),
            call_stack=tuple(self.call_stack),
            pc=self.pc,
        )
