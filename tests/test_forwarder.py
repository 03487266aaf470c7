"""End-to-end tests wiring feed, filter, flush loop and sink together."""

from __future__ import annotations

import logging
import threading
import time
from typing import Dict, List, Tuple

from services.context import ForwarderContext
from services.encoder import LineEncoder
from services.filter import ReadingFilter
from services.flush_loop import FlushLoop
from services.forwarder import Forwarder, build_forwarder
from settings import get_settings

EVENTS: List[Tuple[int, str, int]] = [
    (1, "20.1", 100),
    (3, "99.9", 100),
    (2, "abc", 101),
    (2, "19.0", 102),
]

EXPECTED_BATCH = (
    "temperature,location=Jacuzzi,serial=1,source=Tellstick,"
    "type=Pool\\ thermometer value=20.1 100000000000\n"
    "temperature,location=Jacuzzi,serial=2,source=Tellstick,"
    "type=Pool\\ thermometer value=19.0 102000000000\n"
)


class ReplayFeed:
    """Delivers queued events synchronously as soon as a callback subscribes."""

    def __init__(self, events: List[Tuple[int, str, int]]) -> None:
        self.events = list(events)
        self.callbacks: Dict[int, object] = {}
        self.unsubscribed: List[int] = []
        self.closed = False

    def subscribe(self, callback) -> int:
        handle = len(self.callbacks) + 1
        self.callbacks[handle] = callback
        for event in self.events:
            callback(*event)
        return handle

    def unsubscribe(self, handle: int) -> None:
        self.unsubscribed.append(handle)
        del self.callbacks[handle]

    def close(self) -> None:
        self.closed = True


class BrokenFeed(ReplayFeed):
    def unsubscribe(self, handle: int) -> None:
        raise KeyError(handle)


class RecordingSink:
    def __init__(self) -> None:
        self.payloads: List[str] = []
        self.closed = False
        self.posted = threading.Event()

    def post(self, payload: str) -> bool:
        self.payloads.append(payload)
        self.posted.set()
        return True

    def close(self) -> None:
        self.closed = True


def _forwarder(feed, sink) -> Forwarder:
    return Forwarder(
        context=ForwarderContext.for_sensors([1, 2]),
        feed=feed,
        sink=sink,
        encoder=LineEncoder(),
        wake_timeout=0.05,
    )


def _run_in_background(forwarder: Forwarder) -> threading.Thread:
    thread = threading.Thread(target=forwarder.run, kwargs={"install_signals": False})
    thread.start()
    return thread


def test_single_drain_yields_two_lines_in_arrival_order() -> None:
    context = ForwarderContext.for_sensors([1, 2])
    reading_filter = ReadingFilter(context.watch_set, context.accumulator, context.wake)
    sink = RecordingSink()
    loop = FlushLoop(context, LineEncoder(), sink)

    for event in EVENTS:
        reading_filter(*event)

    assert context.wake.value == 2
    assert loop.flush_once() == 2
    assert sink.payloads == [EXPECTED_BATCH]


def test_forwarder_runs_until_stopped_and_tears_down(caplog) -> None:
    feed = ReplayFeed(EVENTS)
    sink = RecordingSink()
    forwarder = _forwarder(feed, sink)

    with caplog.at_level(logging.INFO):
        thread = _run_in_background(forwarder)
        assert sink.posted.wait(timeout=2)
        assert forwarder.stop() is True
        thread.join(timeout=2)

    assert not thread.is_alive()
    assert sink.payloads == [EXPECTED_BATCH]
    assert feed.unsubscribed == [1]
    assert feed.closed is True
    assert sink.closed is True

    messages = [record.getMessage() for record in caplog.records]
    assert "Init done, listening for sensors: 1 2" in messages
    assert "Shutting down" in messages
    assert "Exit after 1 batch(es), 2 value(s) posted, 0 batch(es) dropped" in messages
    assert forwarder.flush_loop.batches_posted == 1
    assert forwarder.flush_loop.readings_posted == 2
    assert forwarder.flush_loop.batches_failed == 0


def test_final_flush_posts_readings_left_in_buffer() -> None:
    feed = ReplayFeed([])
    sink = RecordingSink()
    forwarder = _forwarder(feed, sink)
    forwarder.stop()
    forwarder.reading_filter.filter(1, "21.5", 1000)

    forwarder.run(install_signals=False)

    assert len(sink.payloads) == 1
    assert "serial=1" in sink.payloads[0]


def test_teardown_failures_are_warnings(caplog) -> None:
    feed = BrokenFeed([])
    sink = RecordingSink()
    forwarder = _forwarder(feed, sink)
    forwarder.stop()

    with caplog.at_level(logging.WARNING, logger="services.forwarder"):
        forwarder.run(install_signals=False)

    assert sink.closed is True
    assert feed.closed is True
    assert any(
        record.levelno == logging.WARNING and "unregister callback" in record.getMessage()
        for record in caplog.records
    )


def test_build_forwarder_uses_settings(monkeypatch) -> None:
    get_settings.cache_clear()
    monkeypatch.setenv("FLUSH_WAKE_TIMEOUT", "0.25")
    monkeypatch.setenv("FLUSH_ON_SHUTDOWN", "false")
    sink = RecordingSink()
    try:
        forwarder = build_forwarder([0x10, 2, 2], ReplayFeed([]), sink=sink)
    finally:
        get_settings.cache_clear()

    assert forwarder.context.watch_set == frozenset({16, 2})
    assert forwarder.flush_loop.wake_timeout == 0.25
    assert forwarder.final_flush is False
    assert forwarder.sink is sink


def test_shutdown_during_live_traffic_loses_nothing_appended_before_it() -> None:
    feed = ReplayFeed([])
    sink = RecordingSink()
    forwarder = _forwarder(feed, sink)
    thread = _run_in_background(forwarder)
    deadline = time.monotonic() + 2
    while not feed.callbacks and time.monotonic() < deadline:
        time.sleep(0.01)
    callback = next(iter(feed.callbacks.values()))

    for timestamp in range(1, 201):
        callback(1 + timestamp % 2, f"{timestamp}.5", timestamp)
    forwarder.stop()
    thread.join(timeout=2)

    posted = "".join(sink.payloads).splitlines()
    assert len(posted) == 200
    assert [line.rsplit(" ", 1)[1] for line in posted] == [
        f"{timestamp}000000000" for timestamp in range(1, 201)
    ]
