"""Pydantic schemas for raw events read from an event feed."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SensorEvent(BaseModel):
    """One raw sensor event as published by the receiver daemon."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    sensor_id: int = Field(..., alias="id", description="Sensor identifier.")
    value: str = Field(..., description="Measured value, still in textual form.")
    timestamp: int = Field(..., description="Seconds since the epoch.")
    protocol: Optional[str] = None
    model: Optional[str] = None
    data_type: Optional[int] = Field(default=None, alias="dataType")

    @field_validator("value", mode="before")
    @classmethod
    def _stringify_value(cls, value: Any) -> Any:
        # Bridges sometimes emit the value as a JSON number.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value
