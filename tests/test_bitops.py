import pytest

from ossim.bitops import (
    bit,
    div_round_up,
    extract_bits,
    extract_bits64,
    genmask,
    genmask64,
    nbits,
)


def test_genmask64_documented_example():
    assert genmask64(39, 21) == 0x000000FFFFE00000


def test_genmask_full_width():
    assert genmask(31, 0) == 0xFFFFFFFF


@pytest.mark.parametrize("h,l", [(0, 0), (12, 0), (27, 15), (25, 5), (31, 31)])
def test_genmask_covers_exact_range(h, l):
    mask = genmask(h, l)
    assert bin(mask).count("1") == h - l + 1
    assert mask & -mask == bit(l)


def test_genmask_single_bit_matches_bit():
    for k in range(32):
        assert genmask(k, k) == bit(k)


def test_genmask_out_of_range_raises():
    with pytest.raises(ValueError):
        genmask(32, 0)
    with pytest.raises(ValueError):
        genmask64(64, 0)
    with pytest.raises(ValueError):
        bit(-1)


def test_nbits_of_page_size():
    assert nbits(256) == 8


def test_nbits_zero():
    assert nbits(0) == 0


@pytest.mark.parametrize("k", range(32))
def test_nbits_of_power_of_two(k):
    assert nbits(1 << k) == k
    assert nbits((1 << k) | ((1 << k) - 1)) == k


@pytest.mark.parametrize("n,d", [(1, 256), (256, 256), (257, 256), (1000, 7)])
def test_div_round_up_bounds(n, d):
    q = div_round_up(n, d)
    assert q * d >= n
    assert q * d < n + d


@pytest.mark.parametrize("value,h,l", [(5, 12, 0), (0x3FF, 25, 5), (1, 31, 31)])
def test_extract_bits_round_trip(value, h, l):
    assert extract_bits(value << l, h, l) == value
    assert extract_bits64(value << l, h, l) == value


def test_extract_bits64_beyond_32_bits():
    assert extract_bits64(0xABCD << 40, 55, 40) == 0xABCD