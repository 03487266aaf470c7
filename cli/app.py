from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

import typer

from cli.config import load_settings, parse_sensor_id
from feeds.jsonlines import JsonLinesFeed
from logging_config import configure_logging
from services.forwarder import build_forwarder

app = typer.Typer(
    help="Forward temperature readings from watched sensors to InfluxDB.",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
)


def _parse_ids(raw_ids: List[str]) -> List[int]:
    sensor_ids: List[int] = []
    for raw in raw_ids:
        try:
            sensor_ids.append(parse_sensor_id(raw))
        except ValueError as exc:
            raise typer.BadParameter(f"Invalid id: {raw!r}", param_hint="SENSOR_IDS") from exc
    return sensor_ids


@app.command()
def main(
    ctx: typer.Context,
    sensor_ids: Optional[List[str]] = typer.Argument(
        None,
        metavar="SENSOR_IDS...",
        help="Sensor ids to forward; any base prefix is accepted (e.g. 0x1f).",
        show_default=False,
    ),
    influx_url: Optional[str] = typer.Option(
        None,
        "--influx-url",
        help="InfluxDB base URL (defaults to INFLUX_URL env or http://localhost:8086).",
    ),
    database: Optional[str] = typer.Option(
        None,
        "--database",
        "-d",
        help="Target database (defaults to INFLUX_DATABASE env or mydb).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each write request.",
    ),
    events: Optional[Path] = typer.Option(
        None,
        "--events",
        exists=True,
        dir_okay=False,
        readable=True,
        help="File of JSON-encoded sensor events, one per line (defaults to stdin).",
    ),
    stop_at_eof: bool = typer.Option(
        False,
        "--stop-at-eof/--keep-running",
        help="Shut down once the event stream is exhausted.",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to LOG_LEVEL env or INFO).",
    ),
) -> None:
    """Listen for sensor events and post watched readings in batches."""
    if not sensor_ids:
        typer.echo(ctx.get_usage())
        raise typer.Exit(code=1)

    watched = _parse_ids(sensor_ids)
    settings = load_settings(
        influx_url=influx_url,
        database=database,
        timeout=timeout,
        log_level=log_level,
    )
    configure_logging(settings.log_level)

    stream = events.open("r", encoding="utf-8") if events is not None else sys.stdin
    try:
        feed = JsonLinesFeed(stream)
        forwarder = build_forwarder(watched, feed, settings=settings)
        if stop_at_eof:
            feed.on_eof = forwarder.stop
        forwarder.run()
    finally:
        if events is not None:
            stream.close()
