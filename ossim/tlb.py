"""Memory instructions that consult the TLB before the page table."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator, Optional

from . import vm
from .common import IODUMP, PAGETBL_DUMP, SimulationError
from .mm import MemoryManager, format_page_table
from .pte import PAGING_MAX_PGN, PAGING_PAGESZ, page_number, page_offset

if TYPE_CHECKING:
    from .common import Process
    from .tlbcache import TlbCache, TlbLookup


def _checked(proc: Optional[Process]) -> Process:
    if proc is None:
        raise SimulationError("no process given")
    return proc


def _memory_of(proc: Process) -> MemoryManager:
    if proc.mm is None:
        raise SimulationError(f"process {proc.pid} has no memory manager")
    return proc.mm


def _region_pages(start: int, end: int) -> Iterator[int]:
    """Pages touching ``[start, end)`` plus the page right after them."""
    pgn = page_number(start)
    while pgn * PAGING_PAGESZ < end and pgn < PAGING_MAX_PGN:
        yield pgn
        pgn += 1
    if pgn < PAGING_MAX_PGN:
        yield pgn


def _used_regions(mm: MemoryManager) -> Iterator[tuple[int, int]]:
    for region in mm.symrgtbl:
        if not region.is_empty() and region.start >= 0:
            yield region.start, region.end


def tlb_change_all_page_tables_of(proc: Process, tlb: TlbCache) -> None:
    """Refresh the cached entries of every page the process has allocated."""
    proc = _checked(proc)
    mm = _memory_of(proc)
    for start, end in _used_regions(mm):
        for pgn in _region_pages(start, end):
            tlb.update(proc.pid, pgn, mm.pgd[pgn])


def tlb_flush_tlb_of(proc: Process, tlb: TlbCache) -> None:
    """Drop the cached entries of every page the process has allocated."""
    proc = _checked(proc)
    mm = _memory_of(proc)
    for start, end in _used_regions(mm):
        for pgn in _region_pages(start, end):
            tlb.clear(proc.pid, pgn)


def tlballoc(proc: Process, size: int, reg_index: int) -> int:
    """Allocate ``size`` bytes for region ``reg_index`` and cache its pages."""
    proc = _checked(proc)
    addr = vm.alloc(proc, 0, reg_index, size)
    if proc.tlb is not None:
        mm = _memory_of(proc)
        for pgn in _region_pages(addr, addr + size):
            proc.tlb.store(proc.pid, pgn, mm.pgd[pgn])
    return addr


def tlbfree_data(proc: Process, reg_index: int) -> None:
    """Drop the cached pages of region ``reg_index`` and free it."""
    proc = _checked(proc)
    symbol = _memory_of(proc).get_symbol(reg_index)
    if proc.tlb is not None and symbol.start >= 0 and not symbol.is_empty():
        for pgn in _region_pages(symbol.start, symbol.end):
            proc.tlb.clear(proc.pid, pgn)
    vm.free(proc, 0, reg_index)


def _lookup(proc: Process, pgn: int) -> Optional[TlbLookup]:
    return proc.tlb.lookup(proc.pid, pgn) if proc.tlb is not None else None


def _resolve_miss(proc: Process, pgn: int, cached: Optional[TlbLookup]) -> bool:
    """Bring the TLB up to date for ``pgn``; return whether it was a hit."""
    mm = _memory_of(proc)
    if cached is not None and cached.hit:
        vm.get_page(proc, pgn)
        proc.tlb.update(proc.pid, pgn, mm.pgd[pgn])
        return True
    if proc.tlb is not None:
        proc.tlb.store(proc.pid, pgn, mm.pgd[pgn])
    return False


def _dump(proc: Process, message: str) -> None:
    print(message)
    if PAGETBL_DUMP:
        print(format_page_table(proc, 0, -1), end="")
    if proc.mram is not None:
        print(proc.mram.dump(), end="")


def _ram_address(frame: int, addr: int) -> int:
    return frame * PAGING_PAGESZ + page_offset(addr)


def tlbread(proc: Process, source: int, offset: int, destination: int) -> int:
    """Read the byte at ``offset`` of region ``source`` and return it.

    ``destination`` names the register meant to receive the value.
    """
    proc = _checked(proc)
    addr = _memory_of(proc).get_symbol(source).start + offset
    pgn = page_number(addr)
    cached = _lookup(proc, pgn)
    if cached is not None and cached.frame is not None and proc.mram is not None:
        return proc.mram.read(_ram_address(cached.frame, addr))
    hit = _resolve_miss(proc, pgn, cached)
    if IODUMP:
        kind = "hit" if hit else "miss"
        _dump(proc, f"TLB {kind} at read region={source} offset={offset}")
    return vm.read(proc, 0, source, offset)


def tlbwrite(proc: Process, data: int, destination: int, offset: int) -> None:
    """Write ``data`` at ``offset`` of region ``destination``."""
    proc = _checked(proc)
    addr = _memory_of(proc).get_symbol(destination).start + offset
    pgn = page_number(addr)
    cached = _lookup(proc, pgn)
    if cached is not None and cached.frame is not None and proc.mram is not None:
        proc.mram.write(_ram_address(cached.frame, addr), data)
        return
    hit = _resolve_miss(proc, pgn, cached)
    if IODUMP:
        kind = "hit" if hit else "miss"
        _dump(
            proc,
            f"TLB {kind} at write region={destination} offset={offset} value={data}",
        )
    vm.write(proc, 0, destination, offset, data)