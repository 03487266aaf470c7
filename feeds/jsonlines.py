"""Event feed reading JSON-encoded sensor events line by line from a stream."""

from __future__ import annotations

import logging
from threading import Event, Lock, Thread
from typing import Callable, Optional, TextIO

from pydantic import ValidationError

from feeds.base import SensorCallback, SubscriptionRegistry
from feeds.schemas import SensorEvent

logger = logging.getLogger(__name__)


class JsonLinesFeed:
    """Publishes one :class:`SensorEvent` per non-blank line of ``stream``.

    Reading starts on a daemon thread with the first subscription. Lines
    that are not valid events are logged and skipped. ``on_eof`` is
    called once when the stream is exhausted.
    """

    def __init__(
        self,
        stream: TextIO,
        on_eof: Optional[Callable[[], object]] = None,
        name: str = "event-feed",
    ) -> None:
        self.stream = stream
        self.on_eof = on_eof
        self._subscriptions = SubscriptionRegistry()
        self._closed = Event()
        self._start_lock = Lock()
        self._thread = Thread(target=self._read_loop, name=name, daemon=True)
        self._started = False

    def subscribe(self, callback: SensorCallback) -> int:
        handle = self._subscriptions.add(callback)
        with self._start_lock:
            if not self._started:
                self._started = True
                self._thread.start()
        return handle

    def unsubscribe(self, handle: int) -> None:
        self._subscriptions.remove(handle)

    def close(self) -> None:
        self._closed.set()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the reader thread; returns ``True`` once it has finished."""
        if not self._started:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _read_loop(self) -> None:
        for line_number, line in enumerate(self.stream, start=1):
            if self._closed.is_set():
                return
            candidate = line.strip()
            if not candidate:
                continue
            try:
                event = SensorEvent.model_validate_json(candidate)
            except ValidationError as exc:
                logger.warning(
                    "Skipping malformed event on line %d (%d error(s))",
                    line_number,
                    exc.error_count(),
                    extra={"reason": exc.errors()[0].get("msg")},
                )
                continue
            self._subscriptions.dispatch(event)

        logger.info("Event stream exhausted")
        if self.on_eof is not None and not self._closed.is_set():
            self.on_eof()
