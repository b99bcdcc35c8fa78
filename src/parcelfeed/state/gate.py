"""Change/throttle gate in front of the durable store."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from parcelfeed._constants import FINGERPRINT_DECIMALS
from parcelfeed.models.live import LivePayload
from parcelfeed.state.policy import Fingerprint, Thresholds, fingerprint, is_significant_change

_logger = logging.getLogger(__name__)


class PersistReason(StrEnum):
    SIGNIFICANT = "significant"
    INTERVAL_ELAPSED = "interval_elapsed"
    THROTTLED = "throttled"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class PersistDecision:
    persist: bool
    reason: PersistReason


class PersistGate:
    """Decide whether a live payload should also be written to the store.

    A payload is persisted when it changed significantly from the previous
    live payload, or when ``min_interval`` seconds have passed since the
    last successful persist. A payload whose fingerprint equals the last
    persisted one is suppressed while still inside ``min_interval``.

    The gate's memory only moves forward through :meth:`record_persisted`,
    so a failed write leaves the next reading free to try again.
    """

    def __init__(
        self,
        *,
        thresholds: Thresholds | None = None,
        min_interval: float = 15.0,
        fingerprint_decimals: int = FINGERPRINT_DECIMALS,
        clock: Callable[[], float] = time.monotonic,
        logger: logging.Logger | None = None,
    ) -> None:
        self._thresholds = thresholds or Thresholds()
        self._min_interval = min_interval
        self._decimals = fingerprint_decimals
        self._clock = clock
        self._logger = logger or _logger
        self._last_fingerprint: Fingerprint | None = None
        self._last_persisted_at: float | None = None

    @property
    def last_fingerprint(self) -> Fingerprint | None:
        return self._last_fingerprint

    @property
    def last_persisted_at(self) -> float | None:
        return self._last_persisted_at

    def _within_interval(self, now: float) -> bool:
        if self._last_persisted_at is None:
            return False
        return now - self._last_persisted_at < self._min_interval

    def evaluate(self, previous: LivePayload | None, current: LivePayload) -> PersistDecision:
        now = self._clock()
        within_interval = self._within_interval(now)

        significant = is_significant_change(previous, current, self._thresholds)
        if not significant and within_interval:
            decision = PersistDecision(False, PersistReason.THROTTLED)
        elif within_interval and fingerprint(current, self._decimals) == self._last_fingerprint:
            decision = PersistDecision(False, PersistReason.DUPLICATE)
        elif significant:
            decision = PersistDecision(True, PersistReason.SIGNIFICANT)
        else:
            decision = PersistDecision(True, PersistReason.INTERVAL_ELAPSED)

        self._logger.debug("Persist decision persist=%s reason=%s", decision.persist, decision.reason)
        return decision

    def record_persisted(self, payload: LivePayload) -> None:
        """Remember *payload* as the last successfully persisted one."""
        self._last_fingerprint = fingerprint(payload, self._decimals)
        self._last_persisted_at = self._clock()
