"""parcelfeed - serial parcel-measurement ingestion with live fan-out."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("parcelfeed")
except PackageNotFoundError:
    __version__ = "0+local"
from parcelfeed.config import FeedConfig
from parcelfeed.exceptions import FeedConfigError, FeedError, FeedLinkError, FeedStoreError
from parcelfeed.ingestion.assembler import MeasurementAssembler
from parcelfeed.link import LinkManager, LinkState
from parcelfeed.live.hub import LiveHub, Subscriber
from parcelfeed.models import LivePayload, Measurement, StoredRecord
from parcelfeed.service import FeedService
from parcelfeed.state.gate import PersistDecision, PersistGate, PersistReason
from parcelfeed.store import InMemoryRecordStore, RecordStore

__all__ = [
    "__version__",
    "FeedConfig",
    "FeedConfigError",
    "FeedError",
    "FeedLinkError",
    "FeedService",
    "FeedStoreError",
    "InMemoryRecordStore",
    "LinkManager",
    "LinkState",
    "LiveHub",
    "LivePayload",
    "Measurement",
    "MeasurementAssembler",
    "PersistDecision",
    "PersistGate",
    "PersistReason",
    "RecordStore",
    "StoredRecord",
    "Subscriber",
]
