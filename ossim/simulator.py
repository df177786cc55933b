"""Whole-machine simulation: loader, CPUs, scheduler, memory and clock."""

from __future__ import annotations

import logging
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path

from .common import PAGING_MAX_MMSWP, Process, SimulationError
from .cpu import run as run_instruction
from .loader import load
from .memphy import MemPhy
from .mm import MemoryManager
from .sched import Scheduler
from .timer import Timer, TimerEvent
from .tlbcache import TlbCache

log = logging.getLogger(__name__)

DEFAULT_TLB_SIZE = 0x10000


@dataclass
class Config:
    """Simulation settings read from a configuration file.

    ``processes`` holds ``(start_time, name, prio)`` for each process.
    """

    time_slot: int
    num_cpus: int
    processes: list[tuple[int, str, int]] = field(default_factory=list)
    memramsz: int = 0x100000
    memswpsz: list[int] = field(default_factory=lambda: [0x1000000, 0, 0, 0])
    tlbsz: int = DEFAULT_TLB_SIZE


def read_config(path: str | Path) -> Config:
    """Parse a configuration file.

    Layout: ``time_slot num_cpus num_processes``, then the RAM size and the
    four swap sizes, then ``start_time name prio`` for each process.
    """
    try:
        text = Path(path).read_text()
    except OSError as exc:
        raise SimulationError(f"Cannot find configure file at {path}") from exc
    tokens = iter(text.split())

    def take(what: str) -> str:
        try:
            return next(tokens)
        except StopIteration:
            raise SimulationError(f"configuration ends before {what}") from None

    def number(what: str) -> int:
        token = take(what)
        try:
            return int(token)
        except ValueError:
            raise SimulationError(f"expected a number for {what}, got {token!r}") from None

    time_slot = number("time slot")
    num_cpus = number("number of CPUs")
    num_processes = number("number of processes")
    memramsz = number("RAM size")
    memswpsz = [number(f"swap {i} size") for i in range(PAGING_MAX_MMSWP)]
    processes = []
    for index in range(num_processes):
        start = number(f"start time of process {index}")
        name = take(f"name of process {index}")
        prio = number(f"priority of process {index}")
        processes.append((start, name, prio))
    return Config(
        time_slot=time_slot,
        num_cpus=num_cpus,
        processes=processes,
        memramsz=memramsz,
        memswpsz=memswpsz,
    )


class Simulator:
    """Runs the configured processes on simulated CPUs until all finish."""

    def __init__(self, config: Config, input_dir: str | Path = "input") -> None:
        self.config = config
        self.input_dir = Path(input_dir)
        self.timer = Timer()
        self.scheduler = Scheduler()
        self.tlb = TlbCache(config.tlbsz)
        self.mram = MemPhy(config.memramsz, True)
        self.mswp = [MemPhy(size, True) for size in config.memswpsz]
        if not self.mswp:
            raise SimulationError("at least one swap device is required")
        self.finished: list[Process] = []
        self._loaded = threading.Event()
        self._lock = threading.Lock()
        self._errors: list[SimulationError] = []

    def run(self) -> list[Process]:
        """Run the simulation and return the processes in finishing order."""
        cpu_events = [self.timer.attach_event() for _ in range(self.config.num_cpus)]
        loader_event = self.timer.attach_event()
        self.timer.start()

        loader = threading.Thread(
            target=self._load_routine, args=(loader_event,), name="loader", daemon=True
        )
        cpus = [
            threading.Thread(
                target=self._cpu_routine, args=(cpu_id, event),
                name=f"cpu-{cpu_id}", daemon=True,
            )
            for cpu_id, event in enumerate(cpu_events)
        ]
        loader.start()
        for cpu in cpus:
            cpu.start()
        for cpu in cpus:
            cpu.join()
        loader.join()
        self.timer.stop()

        if self._errors:
            raise self._errors[0]
        return list(self.finished)

    def _load_routine(self, event: TimerEvent) -> None:
        print("ld_routine")
        try:
            for start_time, name, prio in self.config.processes:
                path = self.input_dir / "proc" / name
                proc = load(path)
                proc.prio = prio
                while self.timer.current_time() < start_time:
                    event.next_slot()
                proc.mm = MemoryManager()
                proc.mram = self.mram
                proc.mswp = self.mswp
                proc.active_mswp = self.mswp[0]
                proc.tlb = self.tlb
                print(f"\tLoaded a process at {path}, PID: {proc.pid} PRIO: {prio}")
                self.scheduler.add_proc(proc)
                event.next_slot()
        except SimulationError as exc:
            self._errors.append(exc)
        finally:
            self._loaded.set()
            event.detach()

    def _cpu_routine(self, cpu_id: int, event: TimerEvent) -> None:
        proc: Process | None = None
        time_left = 0
        try:
            while True:
                if proc is None:
                    proc = self.scheduler.get_proc()
                elif proc.pc == len(proc.code):
                    print(f"\tCPU {cpu_id}: Processed {proc.pid:2d} has finished")
                    with self._lock:
                        self.finished.append(proc)
                    proc = self.scheduler.get_proc()
                    time_left = 0
                elif time_left == 0:
                    print(f"\tCPU {cpu_id}: Put process {proc.pid:2d} to run queue")
                    self.scheduler.put_proc(proc)
                    proc = self.scheduler.get_proc()

                if proc is None:
                    if self._loaded.is_set():
                        print(f"\tCPU {cpu_id} stopped")
                        break
                    event.next_slot()
                    continue
                if time_left == 0:
                    print(f"\tCPU {cpu_id}: Dispatched process {proc.pid:2d}")
                    time_left = self.config.time_slot

                try:
                    run_instruction(proc)
                except (SimulationError, IndexError, ValueError) as exc:
                    log.warning("CPU %d: process %d faulted: %s", cpu_id, proc.pid, exc)
                time_left -= 1
                event.next_slot()
        except SimulationError as exc:
            self._errors.append(exc)
        finally:
            event.detach()


def main(argv: list[str] | None = None) -> int:
    """Run the simulation described by ``input/<config>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 1:
        print("Usage: os [path to configure file]")
        return 1
    try:
        config = read_config(Path("input") / args[0])
        Simulator(config, "input").run()
    except SimulationError as exc:
        print(exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())