"""Virtual memory operations: region allocation, freeing and byte access."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .bitops import extract_bits
from .common import IODUMP, PAGETBL_DUMP, Region, SimulationError
from .mm import MemoryManager, format_page_table, vm_map_ram
from .pte import (
    PAGING_ADDR_FPN_LOBIT,
    PAGING_MAX_PGN,
    PAGING_PAGESZ,
    PAGING_PTE_FPN_HIBIT,
    PAGING_PTE_FPN_LOBIT,
    PAGING_PTE_PRESENT_MASK,
    PAGING_PTE_SWAPPED_MASK,
    is_present,
    page_align,
    page_number,
    page_offset,
    pte_fpn,
    pte_set_fpn,
    pte_swp,
)

if TYPE_CHECKING:
    from .common import Process
    from .memphy import MemPhy

log = logging.getLogger(__name__)


def _memory_of(proc: Process) -> MemoryManager:
    if proc.mm is None:
        raise SimulationError(f"process {proc.pid} has no memory manager")
    return proc.mm


def _ram_of(proc: Process) -> MemPhy:
    if proc.mram is None:
        raise SimulationError(f"process {proc.pid} has no RAM device")
    return proc.mram


def enlist_free_region(mm: MemoryManager, region: Region) -> None:
    """Put ``region`` at the front of the first area's free list."""
    if region.start >= region.end:
        raise SimulationError(
            f"cannot enlist empty region {region.start}-{region.end}"
        )
    mm.get_area(0).free_regions.insert(0, region)


def get_free_region(proc: Process, vmaid: int, size: int) -> Region:
    """Carve ``size`` bytes out of the first free region of area ``vmaid`` that fits."""
    area = _memory_of(proc).get_area(vmaid)
    for index, candidate in enumerate(area.free_regions):
        if candidate.start + size <= candidate.end:
            found = Region(candidate.start, candidate.start + size)
            if candidate.start + size < candidate.end:
                candidate.start += size
            else:
                del area.free_regions[index]
            return found
    raise SimulationError(f"no free region of {size} bytes in area {vmaid}")


def validate_overlap(proc: Process, vmaid: int, start: int, end: int) -> None:
    """Raise ``SimulationError`` if ``[start, end)`` overlaps any memory area."""
    mm = _memory_of(proc)
    mm.get_area(vmaid)
    for area in mm.mmap:
        if area.vm_end > start and area.vm_start < end:
            raise SimulationError(
                f"planned area {start}-{end} overlaps area "
                f"{area.vm_start}-{area.vm_end}"
            )


def inc_vma_limit(proc: Process, vmaid: int, inc_sz: int) -> Region:
    """Grow area ``vmaid`` by ``inc_sz`` bytes at its break and map it into RAM."""
    area = _memory_of(proc).get_area(vmaid)
    incnumpage = page_align(inc_sz) // PAGING_PAGESZ
    planned = Region(area.sbrk, area.sbrk + inc_sz)
    validate_overlap(proc, vmaid, planned.start, planned.end)
    mapped = vm_map_ram(proc, planned.start, planned.end, area.vm_end, incnumpage)
    area.vm_end += inc_sz
    return mapped


def find_victim_page(mm: MemoryManager) -> int:
    """Remove and return the page mapped longest ago."""
    if not mm.fifo_pgn:
        raise SimulationError("cannot find a victim page: page list is empty")
    return mm.fifo_pgn.pop()


def alloc(proc: Process, vmaid: int, rgid: int, size: int) -> int:
    """Allocate ``size`` bytes for symbol ``rgid`` and return its start address."""
    mm = _memory_of(proc)
    symbol = mm.get_symbol(rgid)
    try:
        found = get_free_region(proc, vmaid, size)
    except SimulationError:
        pass
    else:
        symbol.start, symbol.end = found.start, found.end
        return found.start

    area = mm.get_area(vmaid)
    inc_sz = page_align(size)
    old_sbrk = area.sbrk
    inc_vma_limit(proc, vmaid, inc_sz)
    symbol.start, symbol.end = old_sbrk, old_sbrk + size
    area.sbrk = old_sbrk + inc_sz
    return old_sbrk


def free(proc: Process, vmaid: int, rgid: int) -> None:
    """Release the region of symbol ``rgid`` and put it on the free list."""
    log.debug("Free here, proc %d, vmaid %d, rgid %d", proc.pid, vmaid, rgid)
    mm = _memory_of(proc)
    symbol = mm.get_symbol(rgid)
    if symbol.start == -1:
        log.warning(
            "Double free region %d, start %d, end %d", rgid, symbol.start, symbol.end
        )
        return
    if symbol.start % PAGING_PAGESZ:
        log.warning("Region start is not aligned: %d", symbol.start)

    numpages = page_align(symbol.end - symbol.start) // PAGING_PAGESZ
    first = page_number(symbol.start)
    for pgn in range(first, first + numpages):
        mm.pgd[pgn] &= ~PAGING_PTE_PRESENT_MASK

    freed = Region(symbol.start, page_align(symbol.end))
    if not freed.is_empty():
        enlist_free_region(mm, freed)
    symbol.start = symbol.end = -1


def get_page(proc: Process, pgn: int) -> int:
    """Return the frame holding page ``pgn``, bringing it online if needed."""
    if not 0 <= pgn < PAGING_MAX_PGN:
        raise SimulationError(f"page number {pgn} outside the page table")
    mm = _memory_of(proc)
    pte = mm.pgd[pgn]
    if not is_present(pte):
        target = pte_swp(pte)
        try:
            find_victim_page(mm)
        except SimulationError as exc:
            log.error("%s", exc)
        pte = pte_set_fpn(pte, target)
        mm.enlist_page(pgn)
    return pte_fpn(pte)


def _physical_address(proc: Process, addr: int) -> int:
    fpn = get_page(proc, page_number(addr))
    return (fpn << PAGING_ADDR_FPN_LOBIT) + page_offset(addr)


def get_value(proc: Process, addr: int) -> int:
    """Read the byte at virtual address ``addr``."""
    return _ram_of(proc).read(_physical_address(proc, addr))


def set_value(proc: Process, addr: int, value: int) -> None:
    """Write ``value`` to the byte at virtual address ``addr``."""
    _ram_of(proc).write(_physical_address(proc, addr), value)


def read(proc: Process, vmaid: int, rgid: int, offset: int) -> int:
    """Read the byte at ``offset`` inside the region of symbol ``rgid``."""
    mm = _memory_of(proc)
    symbol = mm.get_symbol(rgid)
    mm.get_area(vmaid)
    return get_value(proc, symbol.start + offset)


def write(proc: Process, vmaid: int, rgid: int, offset: int, value: int) -> None:
    """Write ``value`` at ``offset`` inside the region of symbol ``rgid``."""
    mm = _memory_of(proc)
    symbol = mm.get_symbol(rgid)
    mm.get_area(vmaid)
    set_value(proc, symbol.start + offset, value)


def pgalloc(proc: Process, size: int, reg_index: int) -> int:
    """Allocate ``size`` bytes for register ``reg_index`` in the first area."""
    return alloc(proc, 0, reg_index, size)


def pgfree_data(proc: Process, reg_index: int) -> None:
    """Free the region held by register ``reg_index``."""
    free(proc, 0, reg_index)


def _dump_access(proc: Process, message: str) -> None:
    print(message)
    if PAGETBL_DUMP:
        print(format_page_table(proc, 0, -1), end="")
    print(_ram_of(proc).dump(), end="")


def pgread(proc: Process, source: int, offset: int, destination: int) -> int:
    """Read a byte of region ``source`` at ``offset`` and return it.

    ``destination`` names the register meant to receive the value.
    """
    data = read(proc, 0, source, offset)
    if IODUMP:
        _dump_access(proc, f"read region={source} offset={offset} value={data}")
    return data


def pgwrite(proc: Process, data: int, destination: int, offset: int) -> None:
    """Write ``data`` into region ``destination`` at ``offset``."""
    if IODUMP:
        _dump_access(
            proc, f"write region={destination} offset={offset} value={data}"
        )
    write(proc, 0, destination, offset, data)


def free_process_memory(proc: Process) -> None:
    """Give every frame mapped by the process back to its device."""
    mm = _memory_of(proc)
    ram = _ram_of(proc)
    for pgn, pte in enumerate(mm.pgd):
        if not is_present(pte):
            continue
        if pte & PAGING_PTE_SWAPPED_MASK:
            if proc.active_mswp is not None:
                proc.active_mswp.put_free_frame(pte_swp(pte))
        else:
            ram.put_free_frame(
                extract_bits(pte, PAGING_PTE_FPN_HIBIT, PAGING_PTE_FPN_LOBIT)
            )
        mm.pgd[pgn] = 0