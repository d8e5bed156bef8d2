from __future__ import annotations

from typing import Optional

from regvm.machine import Machine, RunResult
from regvm.model import Program
from regvm.parser import parse_program
from regvm.state import MachineState
from regvm.symbols import resolve_symbols


def load_program(src: str) -> Program:
    return resolve_symbols(parse_program(src))


def run_source(src: str, *, state: Optional[MachineState] = None) -> RunResult:
    """Parse, resolve and run ``src`` to completion.

    Parse errors propagate as :class:`~regvm.parser.ParseError`; runtime
    failures are reported on the returned :class:`RunResult`.
    """
    machine = Machine(load_program(src), state=state)
    return machine.run()
