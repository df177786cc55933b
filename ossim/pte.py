"""Paging constants, address decoding and page table entry encoding."""

from .bitops import bit, div_round_up, genmask, nbits

_MASK32 = 0xFFFFFFFF

PAGING_CPU_BUS_WIDTH = 22
PAGING_PAGESZ = 256
PAGING_MEMRAMSZ = bit(10)
PAGING_MEMSWPSZ = bit(14)
PAGING_SWPFPN_OFFSET = 5
PAGING_MAX_PGN = div_round_up(bit(PAGING_CPU_BUS_WIDTH), PAGING_PAGESZ)
PAGING_SBRK_INIT_SZ = PAGING_PAGESZ

PAGING_PTE_PRESENT_MASK = bit(31)
PAGING_PTE_SWAPPED_MASK = bit(30)
PAGING_PTE_RESERVE_MASK = bit(29)
PAGING_PTE_DIRTY_MASK = bit(28)
PAGING_PTE_EMPTY01_MASK = bit(14)
PAGING_PTE_EMPTY02_MASK = bit(13)

PAGING_PTE_USRNUM_LOBIT = 15
PAGING_PTE_USRNUM_HIBIT = 27
PAGING_PTE_FPN_LOBIT = 0
PAGING_PTE_FPN_HIBIT = 12
PAGING_PTE_SWPTYP_LOBIT = 0
PAGING_PTE_SWPTYP_HIBIT = 4
PAGING_PTE_SWPOFF_LOBIT = 5
PAGING_PTE_SWPOFF_HIBIT = 25
PAGING_PTE_PRESENT_BIT = 31
PAGING_PTE_SWAPPED_BIT = 30
PAGING_PTE_RESERVED_BIT = 29
PAGING_PTE_DIRTY_BIT = 28

PAGING_PTE_USRNUM_MASK = genmask(PAGING_PTE_USRNUM_HIBIT, PAGING_PTE_USRNUM_LOBIT)
PAGING_PTE_FPN_MASK = genmask(PAGING_PTE_FPN_HIBIT, PAGING_PTE_FPN_LOBIT)
PAGING_PTE_SWPTYP_MASK = genmask(PAGING_PTE_SWPTYP_HIBIT, PAGING_PTE_SWPTYP_LOBIT)
PAGING_PTE_SWPOFF_MASK = genmask(PAGING_PTE_SWPOFF_HIBIT, PAGING_PTE_SWPOFF_LOBIT)

PAGING_ADDR_OFFST_LOBIT = 0
PAGING_ADDR_OFFST_HIBIT = nbits(PAGING_PAGESZ) - 1
PAGING_ADDR_PGN_LOBIT = nbits(PAGING_PAGESZ)
PAGING_ADDR_PGN_HIBIT = PAGING_CPU_BUS_WIDTH - 1
PAGING_ADDR_FPN_LOBIT = nbits(PAGING_PAGESZ)
PAGING_ADDR_FPN_HIBIT = nbits(PAGING_MEMRAMSZ) - 1
PAGING_SWP_LOBIT = nbits(PAGING_PAGESZ)
PAGING_SWP_HIBIT = nbits(PAGING_MEMSWPSZ) - 1

PAGING_OFFST_MASK = genmask(PAGING_ADDR_OFFST_HIBIT, PAGING_ADDR_OFFST_LOBIT)
PAGING_PGN_MASK = genmask(PAGING_ADDR_PGN_HIBIT, PAGING_ADDR_PGN_LOBIT)
PAGING_FPN_MASK = genmask(PAGING_ADDR_FPN_HIBIT, PAGING_ADDR_FPN_LOBIT)
PAGING_SWP_MASK = genmask(PAGING_SWP_HIBIT, PAGING_SWP_LOBIT)


def _set_field(value: int, field: int, mask: int, offset: int) -> int:
    return ((value & ~mask) | ((field << offset) & mask)) & _MASK32


def _get_field(value: int, mask: int, offset: int) -> int:
    return (value & mask) >> offset


def page_align(size: int) -> int:
    """Round ``size`` up to a whole number of pages."""
    return div_round_up(size, PAGING_PAGESZ) * PAGING_PAGESZ


def page_number(addr: int) -> int:
    """Page number of a virtual address."""
    return _get_field(addr, PAGING_PGN_MASK, PAGING_ADDR_PGN_LOBIT)


def page_offset(addr: int) -> int:
    """Offset of a virtual address within its page."""
    return _get_field(addr, PAGING_OFFST_MASK, PAGING_ADDR_OFFST_LOBIT)


def is_present(pte: int) -> bool:
    """True when the entry's present bit is set."""
    return bool(pte & PAGING_PTE_PRESENT_MASK)


def pte_fpn(pte: int) -> int:
    """Frame number as extracted by the address frame-number field."""
    return _get_field(pte, PAGING_FPN_MASK, PAGING_ADDR_FPN_LOBIT)


def pte_swp(pte: int) -> int:
    """Swap frame number held by a swapped entry."""
    return (pte & PAGING_SWP_MASK) >> PAGING_SWPFPN_OFFSET


def init_pte(
    pte: int, pre: int, fpn: int, drt: int, swp: int, swptyp: int, swpoff: int
) -> int:
    """Return ``pte`` initialised as an online or swapped entry.

    A present, non-swapped entry needs a non-zero frame number; otherwise
    ``ValueError`` is raised. A non-present request leaves ``pte`` unchanged.
    """
    if not pre:
        return pte & _MASK32
    pte = (pte | PAGING_PTE_PRESENT_MASK) & ~PAGING_PTE_DIRTY_MASK
    if not swp:
        if fpn == 0:
            raise ValueError("a present, non-swapped entry needs a frame number")
        pte &= ~PAGING_PTE_SWAPPED_MASK
        return _set_field(pte, fpn, PAGING_PTE_FPN_MASK, PAGING_PTE_FPN_LOBIT)
    pte |= PAGING_PTE_SWAPPED_MASK
    pte = _set_field(pte, swptyp, PAGING_PTE_SWPTYP_MASK, PAGING_PTE_SWPTYP_LOBIT)
    return _set_field(pte, swpoff, PAGING_PTE_SWPOFF_MASK, PAGING_PTE_SWPOFF_LOBIT)


def pte_set_swap(pte: int, swptyp: int, swpoff: int) -> int:
    """Return ``pte`` marked as swapped out to ``swptyp``/``swpoff``."""
    pte |= PAGING_PTE_PRESENT_MASK | PAGING_PTE_SWAPPED_MASK
    pte = _set_field(pte, swptyp, PAGING_PTE_SWPTYP_MASK, PAGING_PTE_SWPTYP_LOBIT)
    return _set_field(pte, swpoff, PAGING_PTE_SWPOFF_MASK, PAGING_PTE_SWPOFF_LOBIT)


def pte_set_fpn(pte: int, fpn: int) -> int:
    """Return ``pte`` marked as online in frame ``fpn``."""
    pte = (pte | PAGING_PTE_PRESENT_MASK) & ~PAGING_PTE_SWAPPED_MASK
    return _set_field(pte, fpn, PAGING_PTE_FPN_MASK, PAGING_PTE_FPN_LOBIT)