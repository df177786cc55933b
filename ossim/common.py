"""Shared data structures and configuration of the OS simulator."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .memphy import MemPhy
    from .mm import MemoryManager
    from .tlbcache import TlbCache

ADDRESS_SIZE = 20
OFFSET_LEN = 10
FIRST_LV_LEN = 5
SECOND_LV_LEN = 5
SEGMENT_LEN = FIRST_LV_LEN
PAGE_LEN = SECOND_LV_LEN

NUM_PAGES = 1 << (ADDRESS_SIZE - OFFSET_LEN)
PAGE_SIZE = 1 << OFFSET_LEN

NUM_REGISTERS = 10

MAX_PRIO = 140
IODUMP = True
PAGETBL_DUMP = True

PAGING_MAX_MMSWP = 4
PAGING_MAX_SYMTBL_SZ = 30


class SimulationError(Exception):
    """Raised when the simulated machine cannot carry out an operation."""


class Opcode(enum.Enum):
    """Instructions understood by the simulated CPU."""

    CALC = "calc"
    ALLOC = "alloc"
    FREE = "free"
    READ = "read"
    WRITE = "write"


@dataclass
class Instruction:
    """One instruction of a process's code segment."""

    opcode: Opcode
    arg_0: int = 0
    arg_1: int = 0
    arg_2: int = 0


@dataclass
class Region:
    """A half-open range of virtual addresses ``[start, end)``."""

    start: int = 0
    end: int = 0

    def is_empty(self) -> bool:
        """True when the region spans no bytes."""
        return self.start == self.end


@dataclass
class Process:
    """Process control block."""

    pid: int
    priority: int = 0
    code: list[Instruction] = field(default_factory=list)
    regs: list[int] = field(default_factory=lambda: [0] * NUM_REGISTERS)
    pc: int = 0
    prio: int = 0
    tlb: Optional[TlbCache] = None
    mm: Optional[MemoryManager] = None
    mram: Optional[MemPhy] = None
    mswp: list[MemPhy] = field(default_factory=list)
    active_mswp: Optional[MemPhy] = None
    page_table: dict[int, dict[int, int]] = field(default_factory=dict)
    bp: int = PAGE_SIZE