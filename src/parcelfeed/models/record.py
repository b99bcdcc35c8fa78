"""Record shape returned by the durable store."""

from __future__ import annotations

from pydantic import Field

from parcelfeed.models._base import FeedBaseModel, UtcDatetime, utcnow


class StoredRecord(FeedBaseModel):
    """A persisted measurement as handed back by a :class:`RecordStore`."""

    id: str
    weight: float
    volume: float
    fee: float
    fee_type: str
    timestamp: UtcDatetime = Field(default_factory=utcnow)
    delivery_company: str | None = None
