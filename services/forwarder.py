"""Lifecycle orchestration: subscribe, run the flush loop, tear down."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterable, Optional

from feeds.base import EventFeed
from logging_config import NOTICE
from models.records import format_id_list
from services.context import ForwarderContext
from services.encoder import LineEncoder
from services.filter import ReadingFilter
from services.flush_loop import FlushLoop
from services.shutdown import ShutdownController
from services.sink import BatchSink, InfluxHttpSink
from settings import Settings, get_settings

logger = logging.getLogger(__name__)


class Forwarder:
    """Wires the producer callback, flush loop and shutdown controller together."""

    def __init__(
        self,
        context: ForwarderContext,
        feed: EventFeed,
        sink: BatchSink,
        encoder: LineEncoder,
        wake_timeout: Optional[float] = 1.0,
        final_flush: bool = True,
    ) -> None:
        self.context = context
        self.feed = feed
        self.sink = sink
        self.reading_filter = ReadingFilter(
            watch_set=context.watch_set,
            accumulator=context.accumulator,
            wake=context.wake,
        )
        self.flush_loop = FlushLoop(
            context=context,
            encoder=encoder,
            sink=sink,
            wake_timeout=wake_timeout,
        )
        self.controller = ShutdownController(context)
        self.final_flush = final_flush
        self._thread: Optional[threading.Thread] = None

    def run(self, install_signals: bool = True) -> None:
        """Block until shutdown is requested and the flush loop has stopped."""
        watched = sorted(self.context.watch_set)
        logger.info(
            "Init done, listening for sensor%s: %s",
            "" if len(watched) == 1 else "s",
            format_id_list(watched),
        )
        if install_signals and threading.current_thread() is threading.main_thread():
            self.controller.install()

        handle = self.feed.subscribe(self.reading_filter)
        self._thread = threading.Thread(
            target=self.flush_loop.run, name="flush-loop", daemon=True
        )
        self._thread.start()
        try:
            # Short joins keep the main thread responsive to signal handlers.
            while self._thread.is_alive():
                self._thread.join(timeout=0.5)
        finally:
            self.controller.request_shutdown()
            self._thread.join()
            self._shutdown(handle)

    def stop(self) -> bool:
        return self.controller.request_shutdown()

    def _shutdown(self, handle: int) -> None:
        logger.log(
            NOTICE,
            "Shutting down",
            extra={"signal": self.controller.received_signal},
        )
        self._teardown("unregister callback", self.feed.unsubscribe, handle)
        if self.final_flush:
            self.flush_loop.drain_remaining()
        self._teardown("close event feed", self.feed.close)
        self._teardown("close sink", self.sink.close)
        self._teardown("restore signal handlers", self.controller.restore)
        logger.log(
            NOTICE,
            "Exit after %d batch(es), %d value(s) posted, %d batch(es) dropped",
            self.flush_loop.batches_posted,
            self.flush_loop.readings_posted,
            self.flush_loop.batches_failed,
        )

    @staticmethod
    def _teardown(step: str, action: Callable[..., Any], *args: Any) -> None:
        try:
            action(*args)
        except Exception as exc:
            logger.warning("Failed to %s: %s", step, exc, extra={"reason": type(exc).__name__})


def build_forwarder(
    sensor_ids: Iterable[int],
    feed: EventFeed,
    settings: Optional[Settings] = None,
    sink: Optional[BatchSink] = None,
) -> Forwarder:
    """Factory that wires the forwarder with settings-driven defaults."""
    settings = settings or get_settings()
    context = ForwarderContext.for_sensors(sensor_ids)
    return Forwarder(
        context=context,
        feed=feed,
        sink=sink if sink is not None else InfluxHttpSink.from_settings(settings),
        encoder=LineEncoder.from_settings(settings),
        wake_timeout=settings.wake_timeout,
        final_flush=settings.final_flush,
    )
