"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable

WatchSet = FrozenSet[int]


@dataclass(frozen=True, slots=True)
class Reading:
    """A single temperature reading accepted from the event feed."""

    sensor_id: int
    temperature: float
    timestamp_seconds: int


def build_watch_set(sensor_ids: Iterable[int]) -> WatchSet:
    """Freeze the configured sensor ids; order and duplicates are irrelevant."""
    return frozenset(sensor_ids)


def format_id_list(sensor_ids: Iterable[int]) -> str:
    """Space separated ids, as used in the startup and per-batch log lines."""
    return " ".join(str(sensor_id) for sensor_id in sensor_ids)
