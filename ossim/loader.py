"""Reading process descriptions into process control blocks."""

from __future__ import annotations

import itertools
from pathlib import Path
from typing import Iterator

from .common import Instruction, Opcode, Process, SimulationError

_ARITY = {
    Opcode.CALC: 0,
    Opcode.ALLOC: 2,
    Opcode.FREE: 1,
    Opcode.READ: 3,
    Opcode.WRITE: 3,
}

_pids = itertools.count(1)


def _take(tokens: Iterator[str], what: str) -> str:
    try:
        return next(tokens)
    except StopIteration:
        raise SimulationError(f"process description ends before {what}") from None


def _number(tokens: Iterator[str], what: str) -> int:
    token = _take(tokens, what)
    try:
        return int(token)
    except ValueError:
        raise SimulationError(f"expected a number for {what}, got {token!r}") from None


def parse_process(text: str, pid: int) -> Process:
    """Build a process with ``pid`` from the text of its description.

    The text holds the priority, the number of instructions, then one
    instruction per entry: an opcode name followed by its arguments.
    """
    tokens = iter(text.split())
    priority = _number(tokens, "priority")
    size = _number(tokens, "code size")
    code = []
    for index in range(size):
        name = _take(tokens, f"instruction {index}")
        try:
            opcode = Opcode(name)
        except ValueError:
            raise SimulationError(f"Opcode: {name}") from None
        args = [_number(tokens, f"argument of {name}") for _ in range(_ARITY[opcode])]
        code.append(Instruction(opcode, *args))
    return Process(pid=pid, priority=priority, code=code)


def load(path: str | Path) -> Process:
    """Load the process described in the file at ``path`` with a fresh PID."""
    pid = next(_pids)
    try:
        text = Path(path).read_text()
    except OSError as exc:
        raise SimulationError(f"Cannot find process description at '{path}'") from exc
    return parse_process(text, pid)