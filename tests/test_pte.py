import pytest

from ossim.bitops import extract_bits
from ossim.pte import (
    PAGING_ADDR_FPN_LOBIT,
    PAGING_PAGESZ,
    PAGING_PTE_DIRTY_MASK,
    PAGING_PTE_FPN_HIBIT,
    PAGING_PTE_FPN_LOBIT,
    PAGING_PTE_PRESENT_MASK,
    PAGING_PTE_SWAPPED_MASK,
    PAGING_PTE_SWPOFF_HIBIT,
    PAGING_PTE_SWPOFF_LOBIT,
    PAGING_PTE_SWPTYP_HIBIT,
    PAGING_PTE_SWPTYP_LOBIT,
    init_pte,
    is_present,
    page_align,
    page_number,
    page_offset,
    pte_fpn,
    pte_set_fpn,
    pte_set_swap,
    pte_swp,
)


@pytest.mark.parametrize("size", [1, 100, 255, 256, 257, 1000])
def test_page_align_is_smallest_multiple(size):
    aligned = page_align(size)
    assert aligned % PAGING_PAGESZ == 0
    assert size <= aligned < size + PAGING_PAGESZ


def test_page_align_of_exact_page():
    assert page_align(PAGING_PAGESZ) == PAGING_PAGESZ


@pytest.mark.parametrize("pgn,off", [(0, 0), (1, 5), (37, 255), (16383, 128)])
def test_address_decoding_round_trip(pgn, off):
    addr = pgn * PAGING_PAGESZ + off
    assert page_number(addr) == pgn
    assert page_offset(addr) == off


@pytest.mark.parametrize("fpn", [1, 3, 200, 0x1FFF])
def test_set_fpn_marks_online(fpn):
    pte = pte_set_fpn(PAGING_PTE_SWAPPED_MASK, fpn)
    assert is_present(pte)
    assert not pte & PAGING_PTE_SWAPPED_MASK
    assert extract_bits(pte, PAGING_PTE_FPN_HIBIT, PAGING_PTE_FPN_LOBIT) == fpn


def test_set_fpn_replaces_previous_frame():
    pte = pte_set_fpn(pte_set_fpn(0, 0x1FFF), 2)
    assert extract_bits(pte, PAGING_PTE_FPN_HIBIT, PAGING_PTE_FPN_LOBIT) == 2


@pytest.mark.parametrize("swptyp,swpoff", [(0, 0), (3, 17), (31, 0xFFFFF)])
def test_set_swap_round_trip(swptyp, swpoff):
    pte = pte_set_swap(0, swptyp, swpoff)
    assert is_present(pte)
    assert pte & PAGING_PTE_SWAPPED_MASK
    assert extract_bits(pte, PAGING_PTE_SWPTYP_HIBIT, PAGING_PTE_SWPTYP_LOBIT) == swptyp
    assert extract_bits(pte, PAGING_PTE_SWPOFF_HIBIT, PAGING_PTE_SWPOFF_LOBIT) == swpoff


def test_init_pte_online_without_frame_raises():
    with pytest.raises(ValueError):
        init_pte(0, 1, 0, 0, 0, 0, 0)


def test_init_pte_not_present_leaves_entry():
    assert init_pte(PAGING_PTE_DIRTY_MASK, 0, 9, 1, 0, 0, 0) == PAGING_PTE_DIRTY_MASK


def test_init_pte_online_clears_dirty_and_swapped():
    start = PAGING_PTE_DIRTY_MASK | PAGING_PTE_SWAPPED_MASK
    pte = init_pte(start, 1, 9, 1, 0, 0, 0)
    assert is_present(pte)
    assert not pte & (PAGING_PTE_DIRTY_MASK | PAGING_PTE_SWAPPED_MASK)
    assert extract_bits(pte, PAGING_PTE_FPN_HIBIT, PAGING_PTE_FPN_LOBIT) == 9


def test_init_pte_swapped_matches_set_swap_without_dirty():
    pte = init_pte(PAGING_PTE_DIRTY_MASK, 1, 0, 0, 1, 4, 77)
    assert pte == pte_set_swap(0, 4, 77)


def test_pte_fpn_reads_address_frame_field():
    assert pte_fpn((3 << PAGING_ADDR_FPN_LOBIT) | 0x7F) == 3


def test_pte_swp_ignores_flag_bits():
    assert pte_swp(PAGING_PTE_PRESENT_MASK | PAGING_PTE_SWAPPED_MASK) == 0