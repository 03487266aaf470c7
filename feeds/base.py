"""Event feed interface and subscription bookkeeping."""

from __future__ import annotations

import itertools
import logging
from threading import Lock
from typing import Callable, Dict, Protocol, runtime_checkable

from feeds.schemas import SensorEvent

logger = logging.getLogger(__name__)

SensorCallback = Callable[[int, str, int], object]


@runtime_checkable
class EventFeed(Protocol):
    """Source of raw sensor events, delivered to callbacks on feed threads."""

    def subscribe(self, callback: SensorCallback) -> int:
        ...

    def unsubscribe(self, handle: int) -> None:
        ...

    def close(self) -> None:
        ...


class SubscriptionRegistry:
    """Thread-safe handle -> callback map shared by concrete feeds."""

    def __init__(self) -> None:
        self._callbacks: Dict[int, SensorCallback] = {}
        self._handles = itertools.count(1)
        self._lock = Lock()

    def add(self, callback: SensorCallback) -> int:
        with self._lock:
            handle = next(self._handles)
            self._callbacks[handle] = callback
        return handle

    def remove(self, handle: int) -> None:
        with self._lock:
            if handle not in self._callbacks:
                raise KeyError(f"No subscription with handle {handle}.")
            del self._callbacks[handle]

    def __len__(self) -> int:
        with self._lock:
            return len(self._callbacks)

    def dispatch(self, event: SensorEvent) -> None:
        with self._lock:
            callbacks = list(self._callbacks.values())
        for callback in callbacks:
            try:
                callback(event.sensor_id, event.value, event.timestamp)
            except Exception:
                logger.exception(
                    "Subscriber failed to handle event",
                    extra={"sensor_id": event.sensor_id},
                )
