"""Data models for parcelfeed."""

from parcelfeed.models._base import FeedBaseModel, utcnow
from parcelfeed.models.live import LivePayload
from parcelfeed.models.measurement import Measurement
from parcelfeed.models.record import StoredRecord

__all__ = [
    "FeedBaseModel",
    "LivePayload",
    "Measurement",
    "StoredRecord",
    "utcnow",
]
