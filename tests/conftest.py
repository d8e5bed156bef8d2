import pytest

from regvm.model import Program
from regvm.state import MachineState


@pytest.fixture
def state():
    return MachineState()


@pytest.fixture
def program():
    return Program(statements=())
