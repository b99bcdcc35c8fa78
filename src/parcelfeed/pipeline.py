"""Wiring between the assembler, the persist gate, the live hub and the store.

Every finalized measurement is broadcast live first. Persisting is a
separate, optional consumer of the same measurement that runs on its own
task, so a slow or failing store never delays the live feed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from parcelfeed.live.hub import LiveHub
from parcelfeed.models.live import LivePayload
from parcelfeed.models.measurement import Measurement
from parcelfeed.models.record import StoredRecord
from parcelfeed.state.gate import PersistDecision, PersistGate
from parcelfeed.store import RecordStore

_logger = logging.getLogger(__name__)


class IngestPipeline:
    def __init__(
        self,
        *,
        hub: LiveHub,
        gate: PersistGate,
        store: RecordStore | None,
        delivery_company: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._hub = hub
        self._gate = gate
        self._store = store
        self._delivery_company = delivery_company
        self._logger = logger or _logger
        self._persist_tasks: set[asyncio.Task[None]] = set()

    @property
    def pending_persists(self) -> int:
        return len(self._persist_tasks)

    def handle_measurement(self, measurement: Measurement) -> PersistDecision:
        """Broadcast *measurement* and, if the gate allows, persist it in the background."""
        previous = self._hub.current
        payload = LivePayload.from_measurement(measurement)
        self._hub.broadcast(payload)

        decision = self._gate.evaluate(previous, payload)
        if decision.persist and self._store is not None:
            task = asyncio.get_running_loop().create_task(self._persist(measurement, payload))
            self._persist_tasks.add(task)
            task.add_done_callback(self._persist_tasks.discard)
        return decision

    async def _persist(self, measurement: Measurement, payload: LivePayload) -> None:
        assert self._store is not None  # noqa: S101
        try:
            record = await self._store.create(measurement, delivery_company=self._delivery_company)
        except Exception:
            self._logger.warning("Failed to persist serial measurement", exc_info=True)
            return

        self._gate.record_persisted(payload)
        self._logger.debug("Measurement persisted id=%s", record.id)
        # Only attach the record id if nothing newer has been broadcast since.
        if self._hub.current is payload:
            self._hub.broadcast(payload.model_copy(update={"record_id": record.id}))

    def publish_record(self, record: StoredRecord | Mapping[str, Any]) -> LivePayload:
        """Broadcast a record created outside the serial path (API, other devices)."""
        payload = LivePayload.from_record(record)
        self._hub.broadcast(payload)
        return payload

    async def drain(self) -> None:
        """Wait for in-flight persist tasks to finish."""
        if self._persist_tasks:
            await asyncio.gather(*tuple(self._persist_tasks), return_exceptions=True)
