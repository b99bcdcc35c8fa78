"""Change significance and de-duplication rules.

This module contains only pure functions over payloads; the stateful
throttling lives in :mod:`parcelfeed.state.gate`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from parcelfeed._constants import FINGERPRINT_DECIMALS
from parcelfeed.models.live import LivePayload

Fingerprint = tuple[float | None, float | None, float | None, str | None]


@dataclass(frozen=True)
class Thresholds:
    """Minimum absolute change per field that counts as significant."""

    weight: float = 0.05
    volume: float = 5.0
    price: float = 0.5


def numbers_differ(previous: float | None, current: float | None, threshold: float) -> bool:
    """A missing or non-finite value on either side is always a change."""
    if previous is None or current is None:
        return True
    if not (math.isfinite(previous) and math.isfinite(current)):
        return True
    return abs(current - previous) >= threshold


def is_significant_change(
    previous: LivePayload | None,
    current: LivePayload,
    thresholds: Thresholds,
) -> bool:
    """Decide whether *current* differs enough from *previous* to persist.

    No previous payload (or the all-null payload) is always significant.
    """
    if previous is None or previous.is_empty:
        return True
    return (
        numbers_differ(previous.weight, current.weight, thresholds.weight)
        or numbers_differ(previous.volume, current.volume, thresholds.volume)
        or numbers_differ(previous.price, current.price, thresholds.price)
        or (previous.fee_type or None) != (current.fee_type or None)
    )


def _rounded(value: float | None, decimals: int) -> float | None:
    if value is None:
        return None
    return round(value, decimals)


def fingerprint(payload: LivePayload, decimals: int = FINGERPRINT_DECIMALS) -> Fingerprint:
    """Identity of a payload for duplicate suppression."""
    return (
        _rounded(payload.weight, decimals),
        _rounded(payload.volume, decimals),
        _rounded(payload.price, decimals),
        payload.fee_type or None,
    )
