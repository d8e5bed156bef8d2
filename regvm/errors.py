from __future__ import annotations

from typing import Any, Optional


class InterpreterError(Exception):
    def __init__(self, message: str, line_no: Optional[int] = None, text: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.line_no = line_no
        self.text = text

    def locate(self, line_no: int, text: str) -> None:
        if self.line_no is None:
            self.line_no = line_no
            self.text = text

    def __str__(self) -> str:
        if self.line_no is None:
            return self.message
        return f"line {self.line_no}: {self.message}"


class InvalidOperand(InterpreterError):
    pass


class InvalidInstruction(InterpreterError):
    pass


class InvalidRegister(InterpreterError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Register '{name}' does not exist")
        self.name = name


class InvalidMemoryAddress(InterpreterError):
    pass


class DivisionByZero(InterpreterError):
    def __init__(self, left: int, right: int) -> None:
        super().__init__(f"Division by zero in {left}/{right}")
        self.left = left
        self.right = right


class ValueTooLarge(InterpreterError):
    def __init__(self, operation: str, left: Any, right: Any) -> None:
        super().__init__(f"Result of '{operation}' on {left!r} and {right!r} is too large")
        self.operation = operation
        self.left = left
        self.right = right


class TypeMismatch(InterpreterError):
    def __init__(self, operation: str, left: Any, right: Any = None) -> None:
        if right is None:
            message = f"Operation '{operation}' not supported on {left!r}"
        else:
            message = f"Operation '{operation}' not supported on {left!r} and {right!r}"
        super().__init__(message)
        self.operation = operation
        self.left = left
        self.right = right


class LabelNotFound(InterpreterError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Label not found: {name}")
        self.name = name


class StackUnderflow(InterpreterError):
    pass


class CannotSetConstant(InterpreterError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Cannot set a constant: {name}")
        self.name = name


class CannotSetIdentifier(InterpreterError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Cannot set an identifier: {name}")
        self.name = name


class ExclusiveAccessError(InterpreterError):
    pass
