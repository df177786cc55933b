"""Physical memory device: RAM or swap, split into page frames."""

from __future__ import annotations

from collections import deque

from .common import SimulationError
from .pte import PAGING_PAGESZ


def _signed_byte(value: int) -> int:
    return (value ^ 0x80) - 0x80


class MemPhy:
    """Byte-addressable storage with a list of free page frames."""

    def __init__(self, max_size: int, random_access: bool = True) -> None:
        self.max_size = max_size
        self.storage = bytearray(max_size)
        self.random_access = bool(random_access)
        self.cursor = 0
        self.free_frames: deque[int] = deque()
        if max_size // PAGING_PAGESZ > 0:
            self.format(PAGING_PAGESZ)

    def format(self, pagesz: int) -> None:
        """Rebuild the free frame list for frames of ``pagesz`` bytes."""
        numfp = self.max_size // pagesz
        if numfp <= 0:
            raise ValueError(
                f"device of {self.max_size} bytes holds no frame of {pagesz} bytes"
            )
        self.free_frames = deque(range(numfp))

    def move_cursor(self, offset: int) -> None:
        """Step the sequential cursor ``offset`` places from the start."""
        steps = max(0, min(offset, self.max_size))
        self.cursor = steps % self.max_size if self.max_size else 0

    def _check(self, addr: int) -> None:
        if not 0 <= addr < self.max_size:
            raise IndexError(f"address {addr} outside device of {self.max_size} bytes")

    def _require_sequential_mode(self) -> None:
        if not self.random_access:
            raise SimulationError("sequential access mode is not supported")

    def read(self, addr: int) -> int:
        """Return the signed byte stored at ``addr``."""
        self._check(addr)
        if not self.random_access:
            self._require_sequential_mode()
            self.move_cursor(addr)
        return _signed_byte(self.storage[addr])

    def write(self, addr: int, data: int) -> None:
        """Store the low eight bits of ``data`` at ``addr``."""
        self._check(addr)
        if not self.random_access:
            self._require_sequential_mode()
            self.move_cursor(addr)
        self.storage[addr] = data & 0xFF

    def get_free_frame(self) -> int:
        """Take the first free frame; raise ``SimulationError`` if none is left."""
        if not self.free_frames:
            raise SimulationError("no free frame left on device")
        return self.free_frames.popleft()

    def put_free_frame(self, fpn: int) -> None:
        """Return frame ``fpn`` to the front of the free list."""
        self.free_frames.appendleft(fpn)

    def dump(self) -> str:
        """Render the device size followed by its raw contents."""
        parts = [str(self.max_size)]
        for i, byte in enumerate(self.storage):
            if i and i % 40 == 0:
                parts.append("\n")
            elif i and i % 4 == 0:
                parts.append(" ")
            parts.append(chr(byte))
        return "".join(parts)