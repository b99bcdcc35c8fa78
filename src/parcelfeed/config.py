"""Runtime configuration for parcelfeed."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from parcelfeed.exceptions import FeedConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, cast: type[int] | type[float]) -> int | float:
    try:
        return cast(value.strip())
    except ValueError as exc:
        raise FeedConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclass(frozen=True)
class FeedConfig:
    """Ingestion and live-feed configuration.

    Parameters
    ----------
    serial_port : str or None
        Serial device path or pyserial URL (e.g. ``/dev/ttyUSB0``,
        ``socket://host:7000``). ``None`` disables ingestion entirely.
    baud_rate : int
        Serial transfer rate.
    ingest_enabled : bool
        Administrative switch for serial ingestion.
    reopen_delay : float
        Seconds to wait before reopening the link after a fault.
    min_persist_interval : float
        Seconds after which an unchanged reading is persisted again.
    weight_threshold : float
        Minimum absolute weight change considered significant.
    volume_threshold : float
        Minimum absolute volume change considered significant.
    price_threshold : float
        Minimum absolute price change considered significant.
    keepalive_interval : float
        Seconds between keep-alive frames on each live subscription.
    retry_hint_ms : int
        Reconnect hint sent to live subscribers when they connect.
    delivery_company : str or None
        Company name stamped on records created from serial readings.
    """

    serial_port: str | None = None
    baud_rate: int = 9600
    ingest_enabled: bool = True
    reopen_delay: float = 5.0
    min_persist_interval: float = 15.0
    weight_threshold: float = 0.05
    volume_threshold: float = 5.0
    price_threshold: float = 0.5
    keepalive_interval: float = 25.0
    retry_hint_ms: int = 5000
    delivery_company: str | None = "ESP32 Device"

    @classmethod
    def from_env(cls, **overrides: Any) -> FeedConfig:
        """Create configuration from ``PARCELFEED_*`` environment variables.

        Explicit keyword arguments take precedence over env values.

        Raises
        ------
        FeedConfigError
            If a numeric variable cannot be parsed.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        port = env.get("PARCELFEED_SERIAL_PORT")
        if port is not None:
            config_kwargs["serial_port"] = port.strip() or None

        company = env.get("PARCELFEED_DELIVERY_COMPANY")
        if company is not None:
            config_kwargs["delivery_company"] = company.strip() or None

        _ENV_NUMERIC_MAP: dict[str, tuple[str, type[int] | type[float]]] = {
            "PARCELFEED_BAUD_RATE": ("baud_rate", int),
            "PARCELFEED_REOPEN_DELAY": ("reopen_delay", float),
            "PARCELFEED_MIN_PERSIST_INTERVAL": ("min_persist_interval", float),
            "PARCELFEED_WEIGHT_THRESHOLD": ("weight_threshold", float),
            "PARCELFEED_VOLUME_THRESHOLD": ("volume_threshold", float),
            "PARCELFEED_PRICE_THRESHOLD": ("price_threshold", float),
            "PARCELFEED_KEEPALIVE_INTERVAL": ("keepalive_interval", float),
            "PARCELFEED_RETRY_HINT_MS": ("retry_hint_ms", int),
        }
        for env_key, (field_name, cast) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, cast)

        if "ingest_enabled" not in overrides:
            config_kwargs["ingest_enabled"] = _env_bool(env.get("PARCELFEED_INGEST_ENABLED"), True)

        config_kwargs.update(overrides)

        config = cls(**config_kwargs)
        config.validate()
        return config

    def validate(self) -> None:
        """Reject values the runtime cannot work with."""
        if self.baud_rate <= 0:
            raise FeedConfigError(f"baud_rate must be positive, got {self.baud_rate}")
        for name in ("reopen_delay", "keepalive_interval"):
            if getattr(self, name) <= 0:
                raise FeedConfigError(f"{name} must be positive, got {getattr(self, name)}")
        for name in ("min_persist_interval", "weight_threshold", "volume_threshold", "price_threshold"):
            if getattr(self, name) < 0:
                raise FeedConfigError(f"{name} must not be negative, got {getattr(self, name)}")

    @property
    def ingest_active(self) -> bool:
        """Whether serial ingestion should run at all."""
        return self.ingest_enabled and bool(self.serial_port)
