# ballot_ledger/ballot_runtime/clock.py
from __future__ import annotations

"""
Authoritative clocks for the ballot ledger.

Each ledger instance reads exactly one clock, so every operation on a
proposal agrees on whether its deadline has passed. Readings are whole
seconds and never move backwards.

- SystemClock : wall-clock seconds, clamped so it is non-decreasing
- ManualClock : explicitly advanced clock for tests and simulations
"""

import threading
import time
from typing import Callable, Optional


class SystemClock:
    """
    Wall-clock seconds (UNIX time), guarded against backwards jumps.

    If the host clock is stepped back (NTP correction, VM resume), the last
    reading is returned until real time catches up again.
    """

    def __init__(self, source: Optional[Callable[[], float]] = None) -> None:
        self._source = source or time.time
        self._lock = threading.Lock()
        self._last = 0

    def now(self) -> int:
        with self._lock:
            current = int(self._source())
            if current < self._last:
                current = self._last
            self._last = current
            return current


class ManualClock:
    """
    Clock that only moves when told to.

    Used by the test-suite and by the `demo` command to close a voting
    window without sleeping.
    """

    def __init__(self, start: int = 0) -> None:
        self._lock = threading.Lock()
        self._now = int(start)

    def now(self) -> int:
        with self._lock:
            return self._now

    def advance(self, seconds: int) -> int:
        if int(seconds) < 0:
            raise ValueError("clock cannot move backwards")
        with self._lock:
            self._now += int(seconds)
            return self._now

    def set(self, timestamp: int) -> int:
        with self._lock:
            if int(timestamp) < self._now:
                raise ValueError("clock cannot move backwards")
            self._now = int(timestamp)
            return self._now
