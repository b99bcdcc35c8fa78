"""Broadcastable projection of the most recent reading."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import Field

from parcelfeed.ingestion.normalize import safe_float, safe_str
from parcelfeed.models._base import FeedBaseModel, UtcDatetime, utcnow
from parcelfeed.models.measurement import Measurement
from parcelfeed.models.record import StoredRecord


class LivePayload(FeedBaseModel):
    """What live subscribers see.

    Serialized flat as ``{"weight", "volume", "price", "feeType",
    "timestamp", "_id"}``; every field may be ``null``.
    """

    weight: float | None = None
    volume: float | None = None
    price: float | None = None
    fee_type: str | None = None
    timestamp: UtcDatetime | None = None
    record_id: str | None = Field(default=None, alias="_id")

    @classmethod
    def empty(cls) -> LivePayload:
        return _EMPTY

    @classmethod
    def from_measurement(cls, measurement: Measurement) -> LivePayload:
        return cls(
            weight=measurement.weight,
            volume=measurement.volume,
            price=measurement.price,
            fee_type=measurement.fee_type,
            timestamp=measurement.timestamp,
        )

    @classmethod
    def from_record(cls, record: StoredRecord | Mapping[str, Any]) -> LivePayload:
        """Project a stored record; ``price`` comes from the record's ``fee``.

        Plain mappings (records created by other code paths) are read
        leniently: non-numeric measurement fields become ``None``.
        """
        if isinstance(record, StoredRecord):
            return cls(
                weight=record.weight,
                volume=record.volume,
                price=record.fee,
                fee_type=record.fee_type,
                timestamp=record.timestamp,
                record_id=record.id,
            )

        record_id = record.get("id", record.get("_id"))
        return cls(
            weight=safe_float(record.get("weight")),
            volume=safe_float(record.get("volume")),
            price=safe_float(record.get("fee")),
            fee_type=safe_str(record.get("feeType", record.get("fee_type"))),
            timestamp=record.get("timestamp") or utcnow(),
            record_id=safe_str(record_id),
        )

    @property
    def is_empty(self) -> bool:
        """True when no measurement value is present."""
        return self.weight is None and self.volume is None and self.price is None

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready flat record as pushed to subscribers."""
        return self.model_dump(mode="json", by_alias=True)


_EMPTY = LivePayload()
