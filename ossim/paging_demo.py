"""Run two copies of a program against the two-level paged memory."""

from __future__ import annotations

import logging
import sys

from .common import Opcode, Process, SimulationError
from .loader import load
from .mem import LegacyMemory

log = logging.getLogger(__name__)

DEFAULT_PROGRAM = "input/p0"


def _register(proc: Process, index: int) -> int:
    if not 0 <= index < len(proc.regs):
        raise SimulationError(f"register {index} does not exist")
    return index


def _step(memory: LegacyMemory, proc: Process) -> None:
    if proc.pc >= len(proc.code):
        raise SimulationError(f"process {proc.pid} has no instruction left")
    ins = proc.code[proc.pc]
    proc.pc += 1
    if ins.opcode is Opcode.CALC:
        return
    if ins.opcode is Opcode.ALLOC:
        reg = _register(proc, ins.arg_1)
        proc.regs[reg] = memory.alloc(ins.arg_0, proc)
    elif ins.opcode is Opcode.FREE:
        memory.free(proc.regs[_register(proc, ins.arg_0)], proc)
    elif ins.opcode is Opcode.READ:
        source = _register(proc, ins.arg_0)
        destination = _register(proc, ins.arg_2)
        proc.regs[destination] = memory.read(proc.regs[source] + ins.arg_1, proc)
    elif ins.opcode is Opcode.WRITE:
        destination = _register(proc, ins.arg_1)
        memory.write(proc.regs[destination] + ins.arg_2, proc, ins.arg_0)


def main(argv: list[str] | None = None) -> int:
    """Load a program twice, interleave the two runs and print the memory."""
    args = sys.argv[1:] if argv is None else list(argv)
    path = args[0] if args else DEFAULT_PROGRAM
    try:
        other = load(path)
        proc = load(path)
    except SimulationError as exc:
        print(exc)
        return 1
    memory = LegacyMemory()
    for _ in range(len(proc.code)):
        for current in (proc, other):
            try:
                _step(memory, current)
            except SimulationError as exc:
                log.debug("process %d: %s", current.pid, exc)
    print(memory.dump(), end="")
    return 0


if __name__ == "__main__":
    sys.exit(main())