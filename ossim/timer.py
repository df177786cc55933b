"""Slot-based clock that keeps simulated devices in lock step."""

from __future__ import annotations

import threading
from typing import Optional

from .common import SimulationError


class TimerEvent:
    """Handle through which one device takes part in the time slots."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._done = False
        self._finished = False

    def next_slot(self) -> None:
        """Report the current slot as done and block until the next one starts."""
        with self._cond:
            self._done = True
            self._cond.notify_all()
            while self._done:
                self._cond.wait()

    def detach(self) -> None:
        """Tell the timer this device takes no further part."""
        with self._cond:
            self._finished = True
            self._cond.notify_all()

    def _wait_for_device(self) -> bool:
        with self._cond:
            while not self._done and not self._finished:
                self._cond.wait()
            return self._finished

    def _release(self) -> None:
        with self._cond:
            self._done = False
            self._cond.notify_all()


class Timer:
    """Advances the clock once every attached device has finished its slot.

    The clock stops by itself once every device has detached.
    """

    def __init__(self) -> None:
        self._events: list[TimerEvent] = []
        self._time = 0
        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()

    def attach_event(self) -> TimerEvent:
        """Register a new device; only possible before the timer starts."""
        if self._thread is not None:
            raise SimulationError("cannot attach a device once the timer has started")
        event = TimerEvent()
        self._events.insert(0, event)
        return event

    def start(self) -> None:
        """Start counting time slots in a background thread."""
        if self._thread is not None:
            raise SimulationError("the timer has already been started")
        self._thread = threading.Thread(target=self._routine, name="timer", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Ask the timer to stop and wait for its thread to end."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
        self._events.clear()

    def current_time(self) -> int:
        """Number of slots elapsed so far."""
        return self._time

    def _routine(self) -> None:
        while not self._stop.is_set():
            print(f"Time slot {self._time:3d}")
            finished = sum(event._wait_for_device() for event in self._events)
            self._time += 1
            for event in self._events:
                event._release()
            if finished == len(self._events):
                break