"""Multi-level queue scheduler."""

from __future__ import annotations

import threading
from typing import Optional

from .common import MAX_PRIO, Process, SimulationError
from .proc_queue import ProcessQueue


class Scheduler:
    """Ready queues, one per priority level, served by a slot-based policy.

    The level of priority ``p`` may hand out ``MAX_PRIO - p`` processes in a
    row before the scheduler moves on to the next level.
    """

    def __init__(self) -> None:
        self._queues = [ProcessQueue() for _ in range(MAX_PRIO)]
        self._lock = threading.Lock()
        self._prio = 0
        self._slots = MAX_PRIO

    def queue_empty(self) -> bool:
        """True when no process waits at any level."""
        with self._lock:
            return all(queue.empty() for queue in self._queues)

    def _advance(self) -> None:
        self._prio = (self._prio + 1) % MAX_PRIO
        self._slots = MAX_PRIO - self._prio

    def get_proc(self) -> Optional[Process]:
        """Take the next process to run, or ``None`` if none is ready."""
        with self._lock:
            for _ in range(MAX_PRIO + 1):
                queue = self._queues[self._prio]
                if self._slots > 0 and not queue.empty():
                    self._slots -= 1
                    return queue.dequeue()
                self._advance()
            return None

    def _enqueue(self, proc: Process) -> None:
        if not 0 <= proc.prio < MAX_PRIO:
            raise SimulationError(
                f"priority {proc.prio} of process {proc.pid} outside 0..{MAX_PRIO - 1}"
            )
        with self._lock:
            self._queues[proc.prio].enqueue(proc)

    def put_proc(self, proc: Process) -> None:
        """Put a process back after its time slice."""
        self._enqueue(proc)

    def add_proc(self, proc: Process) -> None:
        """Admit a newly loaded process."""
        self._enqueue(proc)