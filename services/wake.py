"""Counting wake-up primitive shared by producers, the flush loop and shutdown."""

from __future__ import annotations

import time
from enum import Enum
from threading import Condition
from typing import Optional


class WakeResult(str, Enum):
    """Outcome of a blocking wait on :class:`WakeSignal`."""

    acquired = "acquired"
    interrupted = "interrupted"


class WakeSignal:
    """Semaphore-like counter whose waits can be interrupted.

    The same counter carries two kinds of wake-ups: one ``release`` per
    accepted reading, and one ``release`` from the shutdown controller so
    a waiter blocked on an empty buffer still wakes up and sees the
    cleared running flag. Both must go through this one primitive.

    ``acquire`` returns ``WakeResult.interrupted`` without consuming a
    count when ``interrupt`` is called or the timeout elapses, letting the
    caller decide whether to wait again.
    """

    def __init__(self, value: int = 0) -> None:
        if value < 0:
            raise ValueError("WakeSignal initial value must be >= 0.")
        self._value = value
        self._interrupts = 0
        self._cond = Condition()

    @property
    def value(self) -> int:
        with self._cond:
            return self._value

    def release(self) -> None:
        with self._cond:
            self._value += 1
            self._cond.notify()

    def interrupt(self) -> None:
        """Wake every current waiter with an interrupted result."""
        with self._cond:
            self._interrupts += 1
            self._cond.notify_all()

    def acquire(self, timeout: Optional[float] = None) -> WakeResult:
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            generation = self._interrupts
            while self._value == 0:
                if self._interrupts != generation:
                    return WakeResult.interrupted
                if deadline is None:
                    self._cond.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return WakeResult.interrupted
                self._cond.wait(remaining)
            self._value -= 1
            return WakeResult.acquired
