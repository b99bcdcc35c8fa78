"""Persistence decision layer.

Decides which live readings are worth writing to the durable store. Live
broadcast never passes through here.
"""

from parcelfeed.state.gate import PersistDecision, PersistGate, PersistReason
from parcelfeed.state.policy import Thresholds, fingerprint, is_significant_change

__all__ = [
    "PersistDecision",
    "PersistGate",
    "PersistReason",
    "Thresholds",
    "fingerprint",
    "is_significant_change",
]
