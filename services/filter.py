"""Allow-list filtering and parsing of raw sensor events."""

from __future__ import annotations

import logging
import math
import re
from typing import Optional

from models.records import Reading, WatchSet
from services.accumulator import Accumulator
from services.wake import WakeSignal

logger = logging.getLogger(__name__)

_DECIMAL = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")


class ReadingFilter:
    """Producer side of the pipeline, invoked once per feed event.

    Accepted readings are appended to the accumulator before the wake
    signal is released, so a flush that observes the wake-up always finds
    the reading in the buffer.
    """

    def __init__(
        self,
        watch_set: WatchSet,
        accumulator: Accumulator,
        wake: WakeSignal,
    ) -> None:
        self.watch_set = watch_set
        self.accumulator = accumulator
        self.wake = wake

    def __call__(self, sensor_id: int, value: str, timestamp: int) -> Optional[Reading]:
        return self.filter(sensor_id, value, timestamp)

    def filter(self, sensor_id: int, value: str, timestamp: int) -> Optional[Reading]:
        if sensor_id not in self.watch_set:
            logger.debug("Ignoring measurement from sensor id %d", sensor_id)
            return None

        temperature = self.parse_value(value)
        if temperature is None:
            logger.debug(
                "Ignoring unparseable value from sensor id %d",
                sensor_id,
                extra={"sensor_id": sensor_id, "reason": repr(value)},
            )
            return None

        reading = Reading(
            sensor_id=sensor_id,
            temperature=temperature,
            timestamp_seconds=timestamp,
        )
        self.accumulator.append(reading)
        self.wake.release()
        return reading

    @staticmethod
    def parse_value(value: Optional[str]) -> Optional[float]:
        """Parse a textual temperature; ``None`` for garbage or out-of-range input."""
        if value is None:
            return None
        candidate = value.strip()
        if not _DECIMAL.fullmatch(candidate):
            return None
        try:
            parsed = float(candidate)
        except ValueError:
            return None
        if not math.isfinite(parsed):
            return None
        return parsed
