# ossim

A small operating-system simulator for study. It models:

- CPUs running simple process programs (`calc`, `alloc`, `free`, `read`, `write`)
- a multi-level queue scheduler with one bounded queue per priority level
- paged virtual memory with a RAM device, swap devices and a FIFO page list
- a direct-mapped TLB cache held in a byte-addressed device
- a global slot-based timer that keeps CPUs and the loader in step
- an older two-level paged memory model with a flat physical RAM

It has no dependencies beyond the Python standard library (3.10 or later).

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Running a simulation

The simulator reads a configuration file from an `input/` directory in the
current working directory. Process descriptions live in `input/proc/`.

```
ossim <config-name>
```

The configuration is read as whitespace-separated numbers and names, in this
order:

```
<time slot> <number of CPUs> <number of processes>
<RAM size>
<swap 0 size> <swap 1 size> <swap 2 size> <swap 3 size>
<start time> <process file> <priority>
...
```

Priorities run from 0 (highest) to 139. The TLB size is fixed at 0x10000
bytes (`ossim.simulator.DEFAULT_TLB_SIZE`).

A process file starts with its priority and the number of instructions,
followed by the instructions and their arguments:

```
1 5
alloc 300 0
write 100 0 20
read 0 20 1
free 0
calc
```

- `alloc <size> <region>` allocates `size` bytes for a region id
- `free <region>` frees that region
- `write <value> <region> <offset>` writes a byte into a region
- `read <region> <offset> <register>` reads a byte from a region
- `calc` uses only the CPU

Each slot, the simulator prints the timer tick and what each CPU dispatches,
puts back or finishes. When a read or write cannot be served straight from
the TLB, it prints whether the TLB hit or missed, the page table and a dump
of RAM. `ossim` exits with status 1 and a message if the configuration or a
process file cannot be read.

## The two-level paged memory

```
ossim-paging [program]
```

loads the program (by default `input/p0`) twice, runs the two copies one
instruction at a time in turn against `ossim.mem.LegacyMemory`, and prints
every used page with its owner and its non-zero bytes.

## Using it from Python

```python
from ossim.simulator import Simulator, read_config

config = read_config("input/os_0_mlq_paging")
finished = Simulator(config, "input").run()   # processes in finishing order
```

Lower-level parts can be used directly, for example the physical memory
device:

```python
from ossim.memphy import MemPhy

ram = MemPhy(1024, True)
ram.write(10, 42)
assert ram.read(10) == 42
frame = ram.get_free_frame()   # 0, the first free 256-byte frame
```

or the TLB cache:

```python
from ossim.tlbcache import TlbCache
from ossim.pte import pte_set_fpn

tlb = TlbCache(0x10000)
tlb.store(pid=1, pgnum=3, pte=pte_set_fpn(0, 7))
assert tlb.lookup(1, 3).frame == 7
```

Failures of the simulated machine are raised as
`ossim.common.SimulationError`.

## What it does not do

- Pages are never actually moved between RAM and swap. Swap devices are
  created and a victim page is taken from the FIFO list on a page fault, but
  no frame contents are copied to or from swap.
- The TLB is direct-mapped only; there is no set-associative mode.
- The value returned by a `read` instruction is not stored into the named
  register.
- There is no interactive interface; output goes to standard output.