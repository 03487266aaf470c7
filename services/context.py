"""Shared state passed explicitly to producers, the flush loop and shutdown."""

from __future__ import annotations

from dataclasses import dataclass, field
from threading import Event, Lock
from typing import Iterable

from models.records import WatchSet, build_watch_set
from services.accumulator import Accumulator
from services.wake import WakeSignal


class RunningFlag:
    """Starts true and can only ever be cleared."""

    def __init__(self) -> None:
        self._stopped = Event()
        # Non-blocking acquire is the test-and-set; it is never released.
        self._cleared = Lock()

    def __bool__(self) -> bool:
        return not self._stopped.is_set()

    def clear(self) -> bool:
        """Clear the flag; returns ``True`` only for the call that cleared it."""
        if not self._cleared.acquire(blocking=False):
            return False
        self._stopped.set()
        return True


@dataclass
class ForwarderContext:
    watch_set: WatchSet
    accumulator: Accumulator = field(default_factory=Accumulator)
    wake: WakeSignal = field(default_factory=WakeSignal)
    running: RunningFlag = field(default_factory=RunningFlag)

    @classmethod
    def for_sensors(cls, sensor_ids: Iterable[int]) -> "ForwarderContext":
        return cls(watch_set=build_watch_set(sensor_ids))
