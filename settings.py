from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_INFLUX_URL_ENV = "INFLUX_URL"
_INFLUX_DATABASE_ENV = "INFLUX_DATABASE"
_INFLUX_TIMEOUT_ENV = "INFLUX_TIMEOUT"
_METRIC_NAME_ENV = "METRIC_NAME"
_LOCATION_ENV = "SENSOR_LOCATION"
_SOURCE_ENV = "SENSOR_SOURCE"
_SENSOR_TYPE_ENV = "SENSOR_TYPE"
_WAKE_TIMEOUT_ENV = "FLUSH_WAKE_TIMEOUT"
_FINAL_FLUSH_ENV = "FLUSH_ON_SHUTDOWN"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    influx_url: str
    influx_database: str
    request_timeout: float
    metric_name: str
    location: str
    source: str
    sensor_type: str
    wake_timeout: float
    final_flush: bool
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if not candidate:
        return default
    return candidate in ("true", "1", "yes", "on")


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        influx_url=_read_str_env(_INFLUX_URL_ENV, "http://localhost:8086").rstrip("/"),
        influx_database=_read_str_env(_INFLUX_DATABASE_ENV, "mydb"),
        request_timeout=_read_positive_float(_INFLUX_TIMEOUT_ENV, 10.0),
        metric_name=_read_str_env(_METRIC_NAME_ENV, "temperature"),
        location=_read_str_env(_LOCATION_ENV, "Jacuzzi"),
        source=_read_str_env(_SOURCE_ENV, "Tellstick"),
        sensor_type=_read_str_env(_SENSOR_TYPE_ENV, "Pool thermometer"),
        wake_timeout=_read_positive_float(_WAKE_TIMEOUT_ENV, 1.0),
        final_flush=_read_bool(_FINAL_FLUSH_ENV, True),
        log_level=_read_log_level("INFO"),
    )
