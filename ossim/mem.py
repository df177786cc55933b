"""Two-level paged memory with a flat physical RAM."""

from __future__ import annotations

import threading
from dataclasses import dataclass

from .bitops import div_round_up
from .common import (
    ADDRESS_SIZE,
    NUM_PAGES,
    OFFSET_LEN,
    PAGE_LEN,
    PAGE_SIZE,
    Process,
    SimulationError,
)

RAM_SIZE = 1 << ADDRESS_SIZE


@dataclass
class _PageStat:
    proc: int = 0
    index: int = 0
    next: int = -1


def _offset(addr: int) -> int:
    return addr & ((1 << OFFSET_LEN) - 1)


def _first_lv(addr: int) -> int:
    return addr >> (OFFSET_LEN + PAGE_LEN)


def _second_lv(addr: int) -> int:
    return (addr >> OFFSET_LEN) - (_first_lv(addr) << PAGE_LEN)


def _signed_byte(value: int) -> int:
    return (value ^ 0x80) - 0x80


class LegacyMemory:
    """Physical RAM shared by processes through their two-level page tables."""

    def __init__(self) -> None:
        self.ram = bytearray(RAM_SIZE)
        self._stat = [_PageStat() for _ in range(NUM_PAGES)]
        self._lock = threading.Lock()

    def _translate(self, address: int, proc: Process) -> int:
        table = proc.page_table.get(_first_lv(address))
        frame = table.get(_second_lv(address)) if table is not None else None
        if frame is None:
            raise SimulationError(
                f"address {address:#x} is not mapped for process {proc.pid}"
            )
        return (frame << OFFSET_LEN) | _offset(address)

    def alloc(self, size: int, proc: Process) -> int:
        """Allocate ``size`` bytes for ``proc`` and return their virtual address."""
        num_pages = max(1, div_round_up(size, PAGE_SIZE))
        with self._lock:
            free = [i for i, stat in enumerate(self._stat) if stat.proc == 0]
            if len(free) < num_pages:
                raise SimulationError("not enough physical memory")
            if proc.bp + num_pages * PAGE_SIZE > RAM_SIZE:
                raise SimulationError("not enough virtual address space")
            frames = free[:num_pages]
            start = proc.bp
            proc.bp += num_pages * PAGE_SIZE
            for index, frame in enumerate(frames):
                nxt = frames[index + 1] if index + 1 < len(frames) else -1
                self._stat[frame] = _PageStat(proc.pid, index, nxt)
                vaddr = start + index * PAGE_SIZE
                proc.page_table.setdefault(_first_lv(vaddr), {})[_second_lv(vaddr)] = frame
            return start

    def free(self, address: int, proc: Process) -> None:
        """Release the block that starts at ``address``."""
        with self._lock:
            physical = self._translate(address, proc)
            frame = physical >> OFFSET_LEN
            stat = self._stat[frame]
            if _offset(address) or stat.proc != proc.pid or stat.index != 0:
                raise SimulationError(
                    f"address {address:#x} does not start a block of process {proc.pid}"
                )
            vaddr = address
            while frame != -1:
                nxt = self._stat[frame].next
                self._stat[frame] = _PageStat()
                table = proc.page_table.get(_first_lv(vaddr), {})
                table.pop(_second_lv(vaddr), None)
                if not table:
                    proc.page_table.pop(_first_lv(vaddr), None)
                frame = nxt
                vaddr += PAGE_SIZE

    def read(self, address: int, proc: Process) -> int:
        """Return the signed byte at virtual ``address`` of ``proc``."""
        with self._lock:
            return _signed_byte(self.ram[self._translate(address, proc)])

    def write(self, address: int, proc: Process, data: int) -> None:
        """Store the low eight bits of ``data`` at virtual ``address`` of ``proc``."""
        with self._lock:
            self.ram[self._translate(address, proc)] = data & 0xFF

    def dump(self) -> str:
        """Render every used page and its non-zero bytes."""
        lines = []
        for page, stat in enumerate(self._stat):
            if stat.proc == 0:
                continue
            lo = page << OFFSET_LEN
            hi = ((page + 1) << OFFSET_LEN) - 1
            lines.append(
                "%03d: %05x-%05x - PID: %02d (idx %03d, nxt: %03d)\n"
                % (page, lo, hi, stat.proc, stat.index, stat.next)
            )
            lines.extend(
                "\t%05x: %02x\n" % (addr, self.ram[addr])
                for addr in range(lo, hi + 1)
                if self.ram[addr]
            )
        return "".join(lines)