"""Bounded ready queue of processes ordered by priority."""

from __future__ import annotations

from .common import Process, SimulationError

MAX_QUEUE_SIZE = 10


class ProcessQueue:
    """Queue holding at most ``MAX_QUEUE_SIZE`` processes."""

    def __init__(self) -> None:
        self._procs: list[Process] = []

    def enqueue(self, proc: Process) -> None:
        """Add ``proc`` at the back of the queue."""
        if len(self._procs) >= MAX_QUEUE_SIZE:
            raise SimulationError("process queue is full")
        self._procs.append(proc)

    def dequeue(self) -> Process:
        """Remove and return the process of highest priority (lowest ``prio``).

        Processes of equal priority leave in arrival order.
        """
        if not self._procs:
            raise IndexError("dequeue from an empty process queue")
        best = min(range(len(self._procs)), key=lambda i: self._procs[i].prio)
        return self._procs.pop(best)

    def empty(self) -> bool:
        """True when no process is queued."""
        return not self._procs

    def __len__(self) -> int:
        return len(self._procs)