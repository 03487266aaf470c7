from __future__ import annotations

from typing import Any, List

import pytest
from typer.testing import CliRunner

from cli.app import app
from cli.config import parse_sensor_id
from settings import get_settings


class StubForwarder:
    def __init__(self, sensor_ids, feed, settings) -> None:
        self.sensor_ids = list(sensor_ids)
        self.feed = feed
        self.settings = settings
        self.ran = False

    def run(self) -> None:
        self.ran = True

    def stop(self) -> bool:
        return True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def built(monkeypatch) -> List[StubForwarder]:
    created: List[StubForwarder] = []

    def factory(sensor_ids, feed, settings=None, **_kwargs: Any) -> StubForwarder:
        stub = StubForwarder(sensor_ids, feed, settings)
        created.append(stub)
        return stub

    monkeypatch.setattr("cli.app.build_forwarder", factory)
    monkeypatch.setattr("cli.app.configure_logging", lambda level=None: None)
    get_settings.cache_clear()
    yield created
    get_settings.cache_clear()


def test_no_ids_prints_usage_and_fails(runner: CliRunner, built) -> None:
    result = runner.invoke(app, [])

    assert result.exit_code == 1
    assert "Usage:" in result.stdout
    assert built == []


def test_invalid_id_is_fatal(runner: CliRunner, built) -> None:
    result = runner.invoke(app, ["12", "kitchen"])

    assert result.exit_code == 2
    assert built == []


def test_ids_with_base_prefixes_start_forwarder(runner: CliRunner, built, tmp_path) -> None:
    events = tmp_path / "events.jsonl"
    events.write_text("")

    result = runner.invoke(
        app,
        ["135", "0x1f", "0o17", "--events", str(events), "--database", "pool", "--stop-at-eof"],
    )

    assert result.exit_code == 0, result.output
    assert len(built) == 1
    forwarder = built[0]
    assert forwarder.sensor_ids == [135, 31, 15]
    assert forwarder.ran is True
    assert forwarder.settings.influx_database == "pool"
    assert forwarder.feed.on_eof == forwarder.stop


def test_cli_overrides_environment(monkeypatch, runner: CliRunner, built, tmp_path) -> None:
    monkeypatch.setenv("INFLUX_URL", "http://env-host:8086")
    monkeypatch.setenv("INFLUX_TIMEOUT", "3")
    events = tmp_path / "events.jsonl"
    events.write_text("")

    result = runner.invoke(
        app,
        ["1", "--events", str(events), "--influx-url", "http://cli-host:9999/", "--log-level", "debug"],
    )

    assert result.exit_code == 0, result.output
    settings = built[0].settings
    assert settings.influx_url == "http://cli-host:9999"
    assert settings.request_timeout == 3.0
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("7", 7), ("0x10", 16), ("0b101", 5), ("010", 8), (" 42 ", 42), ("-3", -3)],
)
def test_parse_sensor_id(raw: str, expected: int) -> None:
    assert parse_sensor_id(raw) == expected


@pytest.mark.parametrize("raw", ["", "abc", "1.5", "09", "1_0", "\uff11\uff12", "0x"])
def test_parse_sensor_id_rejects_non_numeric(raw: str) -> None:
    with pytest.raises(ValueError):
        parse_sensor_id(raw)
