"""Consumer side of the pipeline: wait, drain, encode, post."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from logging_config import NOTICE
from models.records import format_id_list
from services.context import ForwarderContext
from services.encoder import LineEncoder
from services.sink import BatchSink
from services.wake import WakeResult

logger = logging.getLogger(__name__)


class FlushState(str, Enum):
    """Lifecycle states of the flush loop."""

    waiting = "waiting"
    draining = "draining"
    encoding = "encoding"
    posting = "posting"
    terminated = "terminated"


class FlushLoop:
    """Drains the accumulator into the sink each time the wake signal fires.

    Runs on a single thread until the running flag is cleared. A batch that
    fails to post is dropped; its readings were already removed from the
    accumulator.
    """

    def __init__(
        self,
        context: ForwarderContext,
        encoder: LineEncoder,
        sink: BatchSink,
        wake_timeout: Optional[float] = 1.0,
    ) -> None:
        self.context = context
        self.encoder = encoder
        self.sink = sink
        self.wake_timeout = wake_timeout
        self.state = FlushState.waiting
        self.batches_posted = 0
        self.readings_posted = 0
        self.batches_failed = 0

    def run(self) -> None:
        self.state = FlushState.waiting
        while True:
            result = self.context.wake.acquire(timeout=self.wake_timeout)
            if not self.context.running:
                break
            if result is WakeResult.interrupted:
                continue
            self.flush_once()
            self.state = FlushState.waiting

        self.state = FlushState.terminated

    def drain_remaining(self) -> int:
        """Final pass after termination for readings appended since the last drain."""
        try:
            return self.flush_once()
        finally:
            self.state = FlushState.terminated

    def flush_once(self) -> int:
        """Drain, encode and post one batch; returns the number of readings posted."""
        self.state = FlushState.draining
        readings = self.context.accumulator.drain_all()
        if not readings:
            return 0
        count = len(readings)
        id_list = format_id_list(reading.sensor_id for reading in readings)

        self.state = FlushState.encoding
        payload = self.encoder.encode(readings)

        self.state = FlushState.posting
        try:
            posted = self.sink.post(payload)
        except Exception:
            logger.exception(
                "Unexpected error while posting %d values",
                count,
                extra={"batch_size": count, "sensor_ids": id_list},
            )
            posted = False

        if not posted:
            self.batches_failed += 1
            logger.error(
                "Dropped batch of %d values from sensor%s: %s",
                count,
                "" if count == 1 else "s",
                id_list,
                extra={"batch_size": count},
            )
            return 0

        self.batches_posted += 1
        self.readings_posted += count
        logger.log(
            NOTICE,
            "Posted %d values to influx db from sensor%s: %s",
            count,
            "" if count == 1 else "s",
            id_list,
            extra={"batch_size": count},
        )
        return count
