"""Bit manipulation helpers used by the paging and TLB code."""

BITS_PER_LONG = 32
BITS_PER_LONG_LONG = 64
BITS_PER_BYTE = 8

_MASK32 = (1 << 32) - 1
_MASK64 = (1 << 64) - 1


def bit(nr: int) -> int:
    """Return an integer with only bit ``nr`` set."""
    if nr < 0:
        raise ValueError(f"bit position must be non-negative, got {nr}")
    return 1 << nr


def div_round_up(n: int, d: int) -> int:
    """Integer division of ``n`` by ``d`` rounded towards positive infinity."""
    return (n + d - 1) // d


def _genmask(h: int, l: int, width: int, full: int) -> int:
    if l < 0 or h < 0 or h >= width:
        raise ValueError(f"mask bounds ({h}, {l}) out of range for {width} bits")
    return ((full << l) & full) & (full >> (width - h - 1))


def genmask(h: int, l: int) -> int:
    """Contiguous 32-bit mask covering bits ``l`` through ``h`` inclusive."""
    return _genmask(h, l, BITS_PER_LONG, _MASK32)


def genmask64(h: int, l: int) -> int:
    """Contiguous 64-bit mask covering bits ``l`` through ``h`` inclusive."""
    return _genmask(h, l, BITS_PER_LONG_LONG, _MASK64)


def nbits(n: int) -> int:
    """Index of the highest set bit of the low 32 bits of ``n`` (0 for 0)."""
    return max((n & _MASK32).bit_length() - 1, 0)


def extract_bits(value: int, h: int, l: int) -> int:
    """Extract bits ``l``..``h`` of ``value`` using a 32-bit mask."""
    return (value & genmask(h, l)) >> l


def extract_bits64(value: int, h: int, l: int) -> int:
    """Extract bits ``l``..``h`` of ``value`` using a 64-bit mask."""
    return (value & genmask64(h, l)) >> l