"""Live fan-out: keeps the current payload and pushes it to subscribers."""

from parcelfeed.live.hub import Connection, LiveHub, Subscriber

__all__ = ["Connection", "LiveHub", "Subscriber"]
