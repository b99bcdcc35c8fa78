"""High-level async service tying ingestion, persistence and live fan-out together."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from parcelfeed.config import FeedConfig
from parcelfeed.ingestion.assembler import MeasurementAssembler
from parcelfeed.link import LinkFactory, LinkManager, serial_link_factory
from parcelfeed.live.hub import Connection, LiveHub, Subscriber
from parcelfeed.models.live import LivePayload
from parcelfeed.models.measurement import Measurement
from parcelfeed.models.record import StoredRecord
from parcelfeed.pipeline import IngestPipeline
from parcelfeed.state.gate import PersistGate
from parcelfeed.state.policy import Thresholds
from parcelfeed.store import RecordStore

_logger = logging.getLogger(__name__)


class FeedService:
    """Serial ingestion plus live fan-out.

    Usage::

        async with FeedService(FeedConfig.from_env(), store=store) as service:
            subscriber = await service.subscribe(response)
    """

    def __init__(
        self,
        config: FeedConfig,
        *,
        store: RecordStore | None = None,
        link_factory: LinkFactory = serial_link_factory,
        on_measurement: Callable[[Measurement], None] | None = None,
    ) -> None:
        self._config = config
        self._store = store
        self._on_measurement_cb = on_measurement
        self.hub = LiveHub(
            store=store,
            keepalive_interval=config.keepalive_interval,
            retry_hint_ms=config.retry_hint_ms,
        )
        self.gate = PersistGate(
            thresholds=Thresholds(
                weight=config.weight_threshold,
                volume=config.volume_threshold,
                price=config.price_threshold,
            ),
            min_interval=config.min_persist_interval,
        )
        self.pipeline = IngestPipeline(
            hub=self.hub,
            gate=self.gate,
            store=store,
            delivery_company=config.delivery_company,
        )
        self.assembler = MeasurementAssembler(on_measurement=self._on_measurement)
        self.link = LinkManager(config, on_data=self.assembler.consume, link_factory=link_factory)
        self._started = False

    @property
    def config(self) -> FeedConfig:
        return self._config

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FeedService:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        await self.link.start()

    async def stop(self) -> None:
        if not self._started:
            return
        self._started = False
        await self.link.stop()
        await self.hub.close()
        await self.pipeline.drain()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def subscribe(self, connection: Connection) -> Subscriber:
        return await self.hub.subscribe(connection)

    def get_latest(self) -> LivePayload:
        return self.hub.get_latest()

    async def ensure_latest(self) -> LivePayload:
        return await self.hub.ensure_latest()

    def publish_record(self, record: StoredRecord | Mapping[str, Any]) -> LivePayload:
        """Entry point for records created outside the serial path."""
        return self.pipeline.publish_record(record)

    def _on_measurement(self, measurement: Measurement) -> None:
        self.pipeline.handle_measurement(measurement)
        if self._on_measurement_cb is not None:
            try:
                self._on_measurement_cb(measurement)
            except Exception:
                _logger.debug("on_measurement callback failed", exc_info=True)

