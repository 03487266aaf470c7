"""Thread-safe accumulation buffer for pending readings."""

from __future__ import annotations

from threading import Lock
from typing import List

from models.records import Reading


class Accumulator:
    """Unbounded append-only buffer with atomic drain.

    Producers append from any thread; the single flush thread drains.
    Every reading appended before ``drain_all`` takes the lock is part of
    the returned batch, every reading appended after it is left for the
    next drain.
    """

    def __init__(self) -> None:
        self._readings: List[Reading] = []
        self._lock = Lock()

    def append(self, reading: Reading) -> None:
        with self._lock:
            self._readings.append(reading)

    def drain_all(self) -> List[Reading]:
        """Remove and return all pending readings in insertion order."""
        with self._lock:
            drained = self._readings
            self._readings = []
        return drained

    def __len__(self) -> int:
        with self._lock:
            return len(self._readings)
