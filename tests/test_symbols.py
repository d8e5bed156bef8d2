import pytest

from regvm.errors import InvalidInstruction
from regvm.model import Define, Halt, Operand, Set, Statement
from regvm.symbols import resolve_compile_time, resolve_symbols
from regvm.value import Number, Text


def _define(name, operand):
    return Statement.compile_time(Define(name=name, value=operand))


def test_labels_map_to_statement_indices():
    program = resolve_symbols(
        [
            Statement.label("START"),
            Statement.instr(Halt()),
            Statement.label("END"),
            Statement.instr(Halt()),
        ]
    )
    assert dict(program.labels) == {"START": 0, "END": 2}
    assert len(program) == 4


def test_duplicate_label_keeps_last_definition():
    program = resolve_symbols(
        [
            Statement.label("LOOP"),
            Statement.instr(Halt()),
            Statement.label("LOOP"),
        ]
    )
    assert program.get_label("LOOP") == 2


def test_defines_resolve_literals_in_order():
    program = resolve_symbols(
        [
            _define("age", Operand.number("33")),
            _define("mask", Operand.number("0xFF")),
            _define("name", Operand.string("Jeffrey")),
            _define("initial", Operand.character("J")),
            _define("years", Operand.constant("age")),
        ]
    )
    assert dict(program.constants) == {
        "age": Number(33),
        "mask": Number(255),
        "name": Text("Jeffrey"),
        "initial": Text("J"),
        "years": Number(33),
    }


def test_forward_constant_reference_is_dropped():
    program = resolve_symbols(
        [
            _define("later_copy", Operand.constant("later")),
            _define("later", Operand.number("1")),
        ]
    )
    assert program.get_constant("later_copy") is None
    assert program.get_constant("later") == Number(1)


@pytest.mark.parametrize(
    "operand",
    [
        Operand.register("r1"),
        Operand.memory("%0x10"),
        Operand.identifier("START"),
        Operand.number("0xZZ"),
    ],
)
def test_runtime_only_operands_are_silently_dropped(operand):
    program = resolve_symbols([_define("x", operand)])
    assert "x" not in program.constants
    assert resolve_compile_time(operand, {}) is None


def test_redefinition_overwrites_constant():
    program = resolve_symbols(
        [
            _define("x", Operand.number("1")),
            _define("x", Operand.number("2")),
        ]
    )
    assert program.get_constant("x") == Number(2)


def test_tables_are_read_only_after_resolution():
    program = resolve_symbols([Statement.label("A"), _define("x", Operand.number("1"))])
    with pytest.raises(TypeError):
        program.constants["y"] = Number(2)  # type: ignore[index]
    with pytest.raises(TypeError):
        program.labels["B"] = 3  # type: ignore[index]


def test_only_define_is_allowed_at_compile_time():
    stmt = Statement.compile_time(Set(value=Operand.number("1"), dest=Operand.register("r1")), line_no=4)
    with pytest.raises(InvalidInstruction) as exc:
        resolve_symbols([stmt])
    assert exc.value.line_no == 4


def test_instruction_statements_are_ignored():
    program = resolve_symbols([Statement.instr(Set(value=Operand.number("1"), dest=Operand.register("r1")))])
    assert dict(program.labels) == {}
    assert dict(program.constants) == {}
