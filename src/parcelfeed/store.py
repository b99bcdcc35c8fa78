"""Durable record store interface.

The real store (a database behind the web application) lives outside this
package. The pipeline only needs the two calls declared on
:class:`RecordStore`; :class:`InMemoryRecordStore` is a process-local
implementation for the CLI and tests.
"""

from __future__ import annotations

import uuid
from typing import Protocol

from parcelfeed.exceptions import FeedStoreError
from parcelfeed.models.measurement import Measurement
from parcelfeed.models.record import StoredRecord


class RecordStore(Protocol):
    """Structural interface of the durable measurement store."""

    async def create(self, measurement: Measurement, *, delivery_company: str | None = None) -> StoredRecord:
        ...

    async def find_latest(self) -> StoredRecord | None:
        ...


class InMemoryRecordStore:
    """Keeps records in a list, newest last.

    ``max_records`` bounds memory; the oldest records are dropped first.
    """

    def __init__(self, *, max_records: int = 10_000) -> None:
        if max_records <= 0:
            raise ValueError(f"max_records must be positive, got {max_records}")
        self._max_records = max_records
        self._records: list[StoredRecord] = []

    @property
    def records(self) -> tuple[StoredRecord, ...]:
        return tuple(self._records)

    async def create(self, measurement: Measurement, *, delivery_company: str | None = None) -> StoredRecord:
        record = StoredRecord(
            id=uuid.uuid4().hex,
            weight=measurement.weight,
            volume=measurement.volume,
            fee=measurement.price,
            fee_type=measurement.fee_type_code,
            timestamp=measurement.timestamp,
            delivery_company=delivery_company,
        )
        self.add(record)
        return record

    def add(self, record: StoredRecord) -> None:
        """Insert an already-built record (e.g. one created by another source)."""
        if any(existing.id == record.id for existing in self._records):
            raise FeedStoreError(f"duplicate record id {record.id!r}")
        self._records.append(record)
        overflow = len(self._records) - self._max_records
        if overflow > 0:
            del self._records[:overflow]

    async def find_latest(self) -> StoredRecord | None:
        if not self._records:
            return None
        return max(self._records, key=lambda record: record.timestamp)
