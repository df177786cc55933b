"""Direct-mapped TLB cache kept in a small byte-addressable device."""

from __future__ import annotations

from typing import NamedTuple, Optional

from .bitops import extract_bits
from .pte import PAGING_PTE_FPN_HIBIT, PAGING_PTE_FPN_LOBIT, is_present

TLB_ENTRY_SZ = 12
"""Bytes per entry: pid, page number and page table entry, four bytes each."""

_PID_OFFSET = 0
_PGN_OFFSET = 4
_PTE_OFFSET = 8
_WORD = 4
_MASK32 = 0xFFFFFFFF


class TlbLookup(NamedTuple):
    """Outcome of a TLB lookup.

    ``hit`` tells whether the entry for the page was cached; ``frame`` is the
    frame number when the cached entry says the page is in RAM.
    """

    hit: bool
    frame: Optional[int]


class TlbCache:
    """TLB entries stored as raw bytes, one slot per ``(pid * pgnum)`` hash."""

    def __init__(self, max_size: int) -> None:
        if max_size < TLB_ENTRY_SZ:
            raise ValueError(
                f"TLB of {max_size} bytes cannot hold an entry of {TLB_ENTRY_SZ} bytes"
            )
        self.max_size = max_size
        self.storage = bytearray(max_size)
        self.entries = max_size // TLB_ENTRY_SZ

    def read_byte(self, addr: int) -> int:
        """Return the byte stored at ``addr``."""
        self._check(addr)
        return self.storage[addr]

    def write_byte(self, addr: int, data: int) -> None:
        """Store the low eight bits of ``data`` at ``addr``."""
        self._check(addr)
        self.storage[addr] = data & 0xFF

    def _check(self, addr: int) -> None:
        if not 0 <= addr < self.max_size:
            raise IndexError(f"address {addr} outside TLB of {self.max_size} bytes")

    def _base(self, pid: int, pgnum: int) -> int:
        return ((pid * pgnum) % self.entries) * TLB_ENTRY_SZ

    def _word(self, addr: int) -> int:
        return int.from_bytes(self.storage[addr:addr + _WORD], "little")

    def _put_word(self, addr: int, value: int) -> None:
        self.storage[addr:addr + _WORD] = (value & _MASK32).to_bytes(_WORD, "little")

    def _matches(self, base: int, pid: int, pgnum: int) -> bool:
        return (
            self._word(base + _PID_OFFSET) == pid & _MASK32
            and self._word(base + _PGN_OFFSET) == pgnum & _MASK32
        )

    def lookup(self, pid: int, pgnum: int) -> TlbLookup:
        """Look up the entry of page ``pgnum`` of process ``pid``."""
        base = self._base(pid, pgnum)
        if not self._matches(base, pid, pgnum):
            return TlbLookup(hit=False, frame=None)
        pte = self._word(base + _PTE_OFFSET)
        if not is_present(pte):
            return TlbLookup(hit=True, frame=None)
        frame = extract_bits(pte, PAGING_PTE_FPN_HIBIT, PAGING_PTE_FPN_LOBIT)
        return TlbLookup(hit=True, frame=frame)

    def store(self, pid: int, pgnum: int, pte: int) -> None:
        """Write an entry for ``pid``/``pgnum``, replacing whatever held its slot."""
        base = self._base(pid, pgnum)
        self._put_word(base + _PID_OFFSET, pid)
        self._put_word(base + _PGN_OFFSET, pgnum)
        self._put_word(base + _PTE_OFFSET, pte)

    def clear(self, pid: int, pgnum: int) -> None:
        """Erase the entry of ``pid``/``pgnum`` if it is cached."""
        base = self._base(pid, pgnum)
        if self._matches(base, pid, pgnum):
            self.storage[base:base + TLB_ENTRY_SZ] = bytes(TLB_ENTRY_SZ)

    def update(self, pid: int, pgnum: int, pte: int) -> None:
        """Replace the page table entry of ``pid``/``pgnum`` if it is cached."""
        base = self._base(pid, pgnum)
        if self._matches(base, pid, pgnum):
            self._put_word(base + _PTE_OFFSET, pte)

    def dump(self) -> str:
        """Render every occupied entry as ``slot: pid pgn pte``."""
        lines = []
        for slot in range(self.entries):
            base = slot * TLB_ENTRY_SZ
            if not any(self.storage[base:base + TLB_ENTRY_SZ]):
                continue
            lines.append(
                "%04d: pid=%d pgn=%d pte=%08x\n"
                % (
                    slot,
                    self._word(base + _PID_OFFSET),
                    self._word(base + _PGN_OFFSET),
                    self._word(base + _PTE_OFFSET),
                )
            )
        return "".join(lines)