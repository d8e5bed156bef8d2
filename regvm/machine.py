from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Union

from regvm.errors import ExclusiveAccessError, InterpreterError
from regvm.instructions import ExecResult, execute
from regvm.model import Program, Statement, StatementKind
from regvm.state import MachineState, StateSnapshot
from regvm.symbols import resolve_symbols

logger = logging.getLogger(__name__)

TraceHook = Callable[[int, Statement], None]


@dataclass
class StepOutcome:
    halted: bool = False
    error: Optional[InterpreterError] = None
    statement: Optional[Statement] = None


@dataclass
class RunResult:
    steps: int
    snapshot: StateSnapshot
    error: Optional[InterpreterError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


class Machine:
    def __init__(
        self,
        program: Union[Program, Sequence[Statement]],
        state: Optional[MachineState] = None,
    ) -> None:
        if not isinstance(program, Program):
            program = resolve_symbols(program)
        self.program = program
        self.state = state if state is not None else MachineState()
        self._hooks: List[TraceHook] = []
        self._busy = False

    @property
    def pc(self) -> int:
        return self.state.pc

    @property
    def running(self) -> bool:
        return self.state.running

    def reset(self) -> None:
        self.state.reset()

    def add_trace_hook(self, hook: TraceHook) -> None:
        self._hooks.append(hook)

    def step(self) -> StepOutcome:
        if self._busy:
            raise ExclusiveAccessError("Machine state is already held by a running step")
        self._busy = True
        try:
            return self._step()
        finally:
            self._busy = False

    def _step(self) -> StepOutcome:
        state = self.state
        if not state.running:
            return StepOutcome(halted=True)

        if state.pc >= len(self.program):
            logger.debug("pc %d ran past the last statement, halting", state.pc)
            state.running = False
            return StepOutcome(halted=True)

        stmt = self.program.statements[state.pc]
        logger.debug("pc=%d %s", state.pc, stmt.describe())
        try:
            for hook in list(self._hooks):
                hook(state.pc, stmt)
            result = self._execute(stmt)
        except InterpreterError as exc:
            exc.locate(stmt.line_no, stmt.text)
            state.running = False
            logger.warning("execution failed at pc %d: %s", state.pc, exc)
            return StepOutcome(error=exc, statement=stmt)

        if result.halt:
            logger.debug("HALT at pc %d", state.pc)
            state.running = False
            return StepOutcome(halted=True, statement=stmt)

        if result.next_pc is None:
            state.pc += 1
        else:
            state.pc = result.next_pc
        return StepOutcome(statement=stmt)

    def _execute(self, stmt: Statement) -> ExecResult:
        if stmt.kind is not StatementKind.INSTRUCTION:
            # Labels and DEFINEs were consumed by the symbol pass.
            return ExecResult()
        return execute(self.state, stmt.instruction, self.program)

    def run(self) -> RunResult:
        if self._busy:
            raise ExclusiveAccessError("Cannot start a run from inside a step")
        steps = 0
        error: Optional[InterpreterError] = None
        while self.state.running:
            outcome = self.step()
            if outcome.statement is not None:
                steps += 1
            if outcome.error is not None:
                error = outcome.error
                break
        snapshot = self.state.snapshot()
        logger.debug("run finished after %d steps\n%s", steps, snapshot.format())
        return RunResult(steps=steps, snapshot=snapshot, error=error)
