"""InfluxDB line-protocol encoding for batches of readings."""

from __future__ import annotations

from typing import Iterable

from models.records import Reading
from settings import Settings

NANOSECONDS_PER_SECOND = 1_000_000_000

_TAG_ESCAPES = str.maketrans({",": r"\,", "=": r"\=", " ": r"\ "})
_MEASUREMENT_ESCAPES = str.maketrans({",": r"\,", " ": r"\ "})


def escape_tag(value: str) -> str:
    return value.translate(_TAG_ESCAPES)


def escape_measurement(value: str) -> str:
    return value.translate(_MEASUREMENT_ESCAPES)


class LineEncoder:
    """Pure encoder, one line per reading in input order."""

    def __init__(
        self,
        metric_name: str = "temperature",
        location: str = "Jacuzzi",
        source: str = "Tellstick",
        sensor_type: str = "Pool thermometer",
    ) -> None:
        self.metric_name = metric_name
        self.location = location
        self.source = source
        self.sensor_type = sensor_type
        self._prefix = escape_measurement(metric_name)
        self._location = escape_tag(location)
        self._source = escape_tag(source)
        self._type = escape_tag(sensor_type)

    @classmethod
    def from_settings(cls, settings: Settings) -> "LineEncoder":
        return cls(
            metric_name=settings.metric_name,
            location=settings.location,
            source=settings.source,
            sensor_type=settings.sensor_type,
        )

    def encode_line(self, reading: Reading) -> str:
        timestamp_ns = reading.timestamp_seconds * NANOSECONDS_PER_SECOND
        return (
            f"{self._prefix}"
            f",location={self._location}"
            f",serial={reading.sensor_id}"
            f",source={self._source}"
            f",type={self._type}"
            f" value={reading.temperature!r}"
            f" {timestamp_ns}\n"
        )

    def encode(self, readings: Iterable[Reading]) -> str:
        return "".join(self.encode_line(reading) for reading in readings)
