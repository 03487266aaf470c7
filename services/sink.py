"""Batch sinks: where encoded batches are posted."""

from __future__ import annotations

import logging
from typing import Optional, Protocol, runtime_checkable

import httpx

from settings import Settings

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@runtime_checkable
class BatchSink(Protocol):
    """Accepts an encoded batch and reports success or failure."""

    def post(self, payload: str) -> bool:
        ...

    def close(self) -> None:
        ...


class InfluxHttpSink:
    """Posts line-protocol batches to an InfluxDB ``/write`` endpoint.

    Failures are logged and reported as ``False``; the caller decides what
    happens to the batch. Nothing is retried here.
    """

    def __init__(
        self,
        base_url: str,
        database: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.database = database
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Content-Type": FORM_CONTENT_TYPE},
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "InfluxHttpSink":
        return cls(
            base_url=settings.influx_url,
            database=settings.influx_database,
            timeout=settings.request_timeout,
            transport=transport,
        )

    @property
    def write_url(self) -> str:
        return f"{self.base_url}/write?db={self.database}"

    def post(self, payload: str) -> bool:
        try:
            response = self._client.post(
                "/write",
                params={"db": self.database},
                content=payload.encode("utf-8"),
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Failed to POST to %s: server answered %d",
                self.write_url,
                exc.response.status_code,
                extra={"status_code": exc.response.status_code},
            )
            return False
        except httpx.HTTPError as exc:
            logger.error(
                "Failed to POST to %s: %s",
                self.write_url,
                exc,
                extra={"reason": type(exc).__name__},
            )
            return False
        return True

    def close(self) -> None:
        self._client.close()
