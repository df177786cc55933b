import pytest

from ossim.common import (
    NUM_REGISTERS,
    PAGE_SIZE,
    Instruction,
    Opcode,
    Process,
    Region,
)


@pytest.mark.parametrize(
    "name,opcode",
    [
        ("calc", Opcode.CALC),
        ("alloc", Opcode.ALLOC),
        ("free", Opcode.FREE),
        ("read", Opcode.READ),
        ("write", Opcode.WRITE),
    ],
)
def test_opcode_from_mnemonic(name, opcode):
    assert Opcode(name) is opcode


def test_unknown_opcode_raises():
    with pytest.raises(ValueError):
        Opcode("jump")


def test_instruction_arguments_default_to_zero():
    ins = Instruction(Opcode.CALC)
    assert (ins.arg_0, ins.arg_1, ins.arg_2) == (0, 0, 0)


def test_region_empty_and_non_empty():
    assert Region().is_empty()
    assert Region(300, 300).is_empty()
    assert not Region(0, 10).is_empty()


def test_process_defaults():
    proc = Process(pid=7)
    assert proc.regs == [0] * NUM_REGISTERS
    assert proc.bp == PAGE_SIZE
    assert proc.pc == 0
    assert proc.code == []


def test_process_registers_are_independent():
    a = Process(pid=1)
    b = Process(pid=2)
    a.regs[0] = 42
    assert b.regs[0] == 0