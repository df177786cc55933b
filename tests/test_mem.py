import pytest

from ossim.common import PAGE_SIZE, Process, SimulationError
from ossim.mem import RAM_SIZE, LegacyMemory


@pytest.fixture
def memory():
    return LegacyMemory()


def test_first_alloc_starts_at_break_pointer(memory):
    proc = Process(pid=1)
    addr = memory.alloc(300, proc)
    assert addr == PAGE_SIZE
    assert proc.bp == 2 * PAGE_SIZE


def test_alloc_advances_by_whole_pages(memory):
    proc = Process(pid=1)
    first = memory.alloc(PAGE_SIZE + 1, proc)
    second = memory.alloc(10, proc)
    assert second - first == 2 * PAGE_SIZE
    assert proc.bp % PAGE_SIZE == 0


def test_write_read_round_trip(memory):
    proc = Process(pid=1)
    addr = memory.alloc(2 * PAGE_SIZE, proc)
    memory.write(addr + PAGE_SIZE + 5, proc, 42)
    memory.write(addr, proc, -5)
    assert memory.read(addr + PAGE_SIZE + 5, proc) == 42
    assert memory.read(addr, proc) == -5
    assert memory.read(addr + 1, proc) == 0


def test_unmapped_access_raises(memory):
    proc = Process(pid=1)
    with pytest.raises(SimulationError):
        memory.read(PAGE_SIZE, proc)
    with pytest.raises(SimulationError):
        memory.write(PAGE_SIZE, proc, 1)


def test_processes_are_isolated(memory):
    a, b = Process(pid=1), Process(pid=2)
    addr_a = memory.alloc(10, a)
    addr_b = memory.alloc(10, b)
    assert addr_a == addr_b
    memory.write(addr_a, a, 11)
    memory.write(addr_b, b, 22)
    assert memory.read(addr_a, a) == 11
    assert memory.read(addr_b, b) == 22


def test_free_unmaps_block(memory):
    proc = Process(pid=1)
    addr = memory.alloc(2 * PAGE_SIZE, proc)
    memory.free(addr, proc)
    with pytest.raises(SimulationError):
        memory.read(addr + PAGE_SIZE, proc)
    assert memory.dump() == ""


def test_free_rejects_middle_of_block(memory):
    proc = Process(pid=1)
    addr = memory.alloc(2 * PAGE_SIZE, proc)
    with pytest.raises(SimulationError):
        memory.free(addr + PAGE_SIZE, proc)
    with pytest.raises(SimulationError):
        memory.free(addr + 1, proc)


def test_free_unknown_address(memory):
    with pytest.raises(SimulationError):
        memory.free(PAGE_SIZE, Process(pid=1))


def test_alloc_too_large(memory):
    proc = Process(pid=1)
    with pytest.raises(SimulationError):
        memory.alloc(RAM_SIZE, proc)
    assert proc.bp == PAGE_SIZE


def test_dump_lists_pages_and_bytes(memory):
    proc = Process(pid=3)
    addr = memory.alloc(10, proc)
    memory.write(addr, proc, 0x2A)
    text = memory.dump()
    assert "PID: 03" in text
    assert "nxt: -01" in text
    assert "\t00000: 2a\n" in text