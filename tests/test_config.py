from __future__ import annotations

import os

import pytest

from parcelfeed.config import FeedConfig
from parcelfeed.exceptions import FeedConfigError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("PARCELFEED_"):
            monkeypatch.delenv(key)


def test_defaults() -> None:
    config = FeedConfig.from_env()

    assert config.serial_port is None
    assert config.baud_rate == 9600
    assert config.reopen_delay == 5.0
    assert config.min_persist_interval == 15.0
    assert config.weight_threshold == 0.05
    assert config.volume_threshold == 5.0
    assert config.price_threshold == 0.5
    assert config.keepalive_interval == 25.0
    assert config.retry_hint_ms == 5000
    assert config.delivery_company == "ESP32 Device"
    assert config.ingest_active is False


def test_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PARCELFEED_SERIAL_PORT", " /dev/ttyUSB0 ")
    monkeypatch.setenv("PARCELFEED_BAUD_RATE", "115200")
    monkeypatch.setenv("PARCELFEED_REOPEN_DELAY", "2.5")
    monkeypatch.setenv("PARCELFEED_DELIVERY_COMPANY", "")

    config = FeedConfig.from_env()

    assert config.serial_port == "/dev/ttyUSB0"
    assert config.baud_rate == 115200
    assert config.reopen_delay == 2.5
    assert config.delivery_company is None
    assert config.ingest_active is True


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("0", False), ("off", False), ("No", False), ("true", True), ("1", True), ("maybe", True)],
)
def test_ingest_enabled_flag(monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool) -> None:
    monkeypatch.setenv("PARCELFEED_SERIAL_PORT", "/dev/ttyUSB0")
    monkeypatch.setenv("PARCELFEED_INGEST_ENABLED", raw)

    config = FeedConfig.from_env()

    assert config.ingest_enabled is expected
    assert config.ingest_active is expected


def test_overrides_take_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PARCELFEED_SERIAL_PORT", "/dev/ttyUSB0")
    monkeypatch.setenv("PARCELFEED_BAUD_RATE", "not-a-number")

    config = FeedConfig.from_env(serial_port="/dev/ttyACM1", baud_rate=19200)

    assert config.serial_port == "/dev/ttyACM1"
    assert config.baud_rate == 19200


def test_bad_number_raises_config_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PARCELFEED_MIN_PERSIST_INTERVAL", "soon")

    with pytest.raises(FeedConfigError, match="PARCELFEED_MIN_PERSIST_INTERVAL"):
        FeedConfig.from_env()


@pytest.mark.parametrize(
    "overrides",
    [{"baud_rate": 0}, {"reopen_delay": 0}, {"keepalive_interval": -1}, {"weight_threshold": -0.1}],
)
def test_invalid_values_rejected(overrides: dict[str, float]) -> None:
    with pytest.raises(FeedConfigError):
        FeedConfig.from_env(**overrides)
