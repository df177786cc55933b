"""Paging memory manager: areas, symbol table, page table and frame mapping."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterable, TypeVar

from .common import PAGING_MAX_SYMTBL_SZ, Region, SimulationError
from .pte import PAGING_MAX_PGN, PAGING_PAGESZ, page_number, pte_set_fpn

if TYPE_CHECKING:
    from .common import Process
    from .memphy import MemPhy

log = logging.getLogger(__name__)

_T = TypeVar("_T")


@dataclass
class VmArea:
    """A virtual memory area with its break pointer and free regions."""

    vm_id: int
    vm_start: int = 0
    vm_end: int = 0
    sbrk: int = 0
    free_regions: list[Region] = field(default_factory=list)


class MemoryManager:
    """Per-process memory state: page table, areas, symbols and FIFO pages."""

    def __init__(self) -> None:
        self.pgd: list[int] = [0] * PAGING_MAX_PGN
        area = VmArea(vm_id=1)
        area.free_regions.insert(0, Region(area.vm_start, area.vm_end))
        self.mmap: list[VmArea] = [area]
        self.symrgtbl: list[Region] = [Region() for _ in range(PAGING_MAX_SYMTBL_SZ)]
        self.fifo_pgn: deque[int] = deque()

    def get_area(self, vmaid: int) -> VmArea:
        """Return the area with index ``vmaid``."""
        if not 0 <= vmaid < len(self.mmap):
            raise SimulationError(f"no memory area with id {vmaid}")
        return self.mmap[vmaid]

    def get_symbol(self, rgid: int) -> Region:
        """Return the symbol table region for ``rgid``."""
        if not 0 <= rgid < PAGING_MAX_SYMTBL_SZ:
            raise SimulationError(f"region id {rgid} outside the symbol table")
        return self.symrgtbl[rgid]

    def enlist_page(self, pgn: int) -> None:
        """Record ``pgn`` as the most recently mapped page."""
        self.fifo_pgn.appendleft(pgn)


def _memory_of(proc: Process) -> MemoryManager:
    if proc.mm is None:
        raise SimulationError(f"process {proc.pid} has no memory manager")
    return proc.mm


def _ram_of(proc: Process) -> MemPhy:
    if proc.mram is None:
        raise SimulationError(f"process {proc.pid} has no RAM device")
    return proc.mram


def vmap_page_range(proc: Process, addr: int, pgnum: int, frames: Iterable[int]) -> Region:
    """Map ``pgnum`` pages starting at aligned ``addr`` onto ``frames``.

    Returns the mapped region. Pages mapped before a failure stay mapped.
    """
    mm = _memory_of(proc)
    frames = list(frames)
    pgn = page_number(addr)
    region = Region(addr, addr)
    for i in range(pgnum):
        if i >= len(frames):
            raise SimulationError("not enough frames to map the requested pages")
        if pgn + i >= PAGING_MAX_PGN:
            raise SimulationError("page number outside the page table")
        mm.pgd[pgn + i] = pte_set_fpn(mm.pgd[pgn + i], frames[i])
        mm.enlist_page(pgn + i)
        region.end += PAGING_PAGESZ
    return region


def alloc_pages_range(proc: Process, req_pgnum: int) -> list[int]:
    """Take ``req_pgnum`` free frames from the process RAM, newest first.

    If RAM runs out, the frames already taken go back and
    ``SimulationError`` is raised.
    """
    ram = _ram_of(proc)
    frames: list[int] = []
    try:
        for _ in range(req_pgnum):
            frames.insert(0, ram.get_free_frame())
    except SimulationError as exc:
        for fpn in frames:
            ram.put_free_frame(fpn)
        raise SimulationError(
            f"out of memory: {req_pgnum} frames requested, {len(frames)} available"
        ) from exc
    return frames


def vm_map_ram(
    proc: Process, astart: int, aend: int, mapstart: int, incpgnum: int
) -> Region:
    """Allocate ``incpgnum`` frames and map them from ``mapstart``."""
    frames = alloc_pages_range(proc, incpgnum)
    region = vmap_page_range(proc, mapstart, incpgnum, frames)
    if region.start != astart or region.end != aend:
        log.debug(
            "mapped region %d-%d differs from area %d-%d",
            region.start, region.end, astart, aend,
        )
    return region


def swap_copy_page(src: MemPhy, srcfpn: int, dst: MemPhy, dstfpn: int) -> None:
    """Copy the contents of frame ``srcfpn`` of ``src`` to frame ``dstfpn`` of ``dst``."""
    for cell in range(PAGING_PAGESZ):
        data = src.read(srcfpn * PAGING_PAGESZ + cell)
        dst.write(dstfpn * PAGING_PAGESZ + cell, data)


def _format_list(title: str, items: Iterable[_T], render: Callable[[_T], str]) -> str:
    items = list(items)
    if not items:
        return f"{title}: NULL list\n"
    return f"{title}: \n" + "".join(f"{render(item)}\n" for item in items) + "\n"


def format_frames(frames: Iterable[int]) -> str:
    """Render a list of frame numbers."""
    return _format_list("print_list_fp", frames, lambda fpn: f"fp[{fpn}]")


def format_regions(regions: Iterable[Region]) -> str:
    """Render a list of regions."""
    return _format_list("print_list_rg", regions, lambda rg: f"rg[{rg.start}->{rg.end}]")


def format_areas(areas: Iterable[VmArea]) -> str:
    """Render a list of memory areas."""
    return _format_list(
        "print_list_vma", areas, lambda vma: f"va[{vma.vm_start}->{vma.vm_end}]"
    )


def format_pages(pages: Iterable[int]) -> str:
    """Render a list of page numbers."""
    return _format_list("print_list_pgn", pages, lambda pgn: f"va[{pgn}]-")


def format_page_table(proc: Process, start: int = 0, end: int | None = -1) -> str:
    """Render page table entries covering addresses ``start`` to ``end``.

    An ``end`` of ``-1`` or ``None`` means the end of the first area.
    """
    mm = _memory_of(proc)
    if end is None or end == -1 or end == 0xFFFFFFFF:
        end = mm.get_area(0).vm_end
    lines = [f"print_pgtbl: {start} - {end}\n"]
    for pgn in range(page_number(start), page_number(end)):
        lines.append(f"{pgn * 4:08d}: {mm.pgd[pgn]:08x}\n")
    return "".join(lines)