"""Custom exception hierarchy for parcelfeed."""

from __future__ import annotations


class FeedError(Exception):
    """Base exception for all parcelfeed errors."""


class FeedConfigError(FeedError):
    """Invalid or missing configuration."""


class FeedLinkError(FeedError):
    """Ingestion link failure (open failed, device vanished, read error)."""

    def __init__(self, message: str, *, port: str = "") -> None:
        self.port = port
        super().__init__(message)


class FeedStoreError(FeedError):
    """Durable record store rejected or failed a request."""
