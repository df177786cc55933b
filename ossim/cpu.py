"""Instruction execution on the simulated CPU."""

from __future__ import annotations

from .common import Opcode, Process, SimulationError
from .tlb import tlballoc, tlbfree_data, tlbread, tlbwrite


def calc(proc: Process) -> int:
    """Carry out a pure computation that uses only the CPU.

    It touches no memory and always succeeds for a real process, giving 0.
    Raises ``SimulationError`` when there is no process to compute for.
    """
    if proc is None:
        raise SimulationError("calc needs a process to run on")
    return proc.pid & 0


def run(proc: Process) -> None:
    """Execute the instruction at the process's program counter and advance it.

    Raises ``SimulationError`` when the process has no instruction left.
    """
    if proc.pc >= len(proc.code):
        raise SimulationError(f"process {proc.pid} has no instruction left")
    ins = proc.code[proc.pc]
    proc.pc += 1
    if ins.opcode is Opcode.CALC:
        calc(proc)
    elif ins.opcode is Opcode.ALLOC:
        tlballoc(proc, ins.arg_0, ins.arg_1)
    elif ins.opcode is Opcode.FREE:
        tlbfree_data(proc, ins.arg_0)
    elif ins.opcode is Opcode.READ:
        tlbread(proc, ins.arg_0, ins.arg_1, ins.arg_2)
    elif ins.opcode is Opcode.WRITE:
        tlbwrite(proc, ins.arg_0, ins.arg_1, ins.arg_2)
    else:
        raise SimulationError(f"unknown opcode {ins.opcode!r}")