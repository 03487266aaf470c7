from __future__ import annotations

import re
from dataclasses import replace
from typing import Optional

from settings import Settings, get_settings

_LEGACY_OCTAL = re.compile(r"[+-]?0[0-7]+")
_INT_LITERAL = re.compile(r"[+-]?(0[xX][0-9a-fA-F]+|0[oO][0-7]+|0[bB][01]+|[0-9]+)")


def parse_sensor_id(raw: str) -> int:
    """Parse a sensor id with any base prefix (``0x1f``, ``0o17``, ``0b101``).

    A bare leading zero is read as octal, as ``strtol`` with base 0 would.
    """
    candidate = raw.strip()
    if not _INT_LITERAL.fullmatch(candidate):
        raise ValueError(f"Not an integer literal: {raw!r}")
    try:
        return int(candidate, 0)
    except ValueError:
        if _LEGACY_OCTAL.fullmatch(candidate):
            return int(candidate, 8)
        raise


def load_settings(
    influx_url: Optional[str] = None,
    database: Optional[str] = None,
    timeout: Optional[float] = None,
    log_level: Optional[str] = None,
) -> Settings:
    """Environment-backed settings with command-line overrides applied on top."""
    settings = get_settings()
    overrides = {}
    if influx_url:
        overrides["influx_url"] = influx_url.rstrip("/")
    if database:
        overrides["influx_database"] = database
    if timeout is not None and timeout > 0:
        overrides["request_timeout"] = timeout
    if log_level:
        overrides["log_level"] = log_level.strip().upper()
    return replace(settings, **overrides) if overrides else settings
