"""Measurement assembler.

The device prints weight, volume, fee and fee-type lines in no fixed
order, interleaved with diagnostic chatter. The assembler keeps an
:class:`AccumulationBuffer` of the fields seen so far and finalizes a
:class:`~parcelfeed.models.Measurement` as soon as weight, volume and
price are all present.
"""

from __future__ import annotations

import codecs
import enum
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from parcelfeed.ingestion.normalize import fee_type_code, safe_float
from parcelfeed.models._base import utcnow
from parcelfeed.models.measurement import Measurement

_logger = logging.getLogger(__name__)

_LINE_SPLIT = re.compile(r"\r?\n")

_WEIGHT_RE = re.compile(r"(?:Average\s+)?Weight:\s*(-?\d+(?:\.\d+)?)", re.IGNORECASE)
_VOLUME_RE = re.compile(r"(?:Average\s+)?Volume:\s*(-?\d+(?:\.\d+)?)", re.IGNORECASE)
_PRICE_RE = re.compile(r"Fee:\s*Rs\.?\s*(-?\d+(?:\.\d+)?)", re.IGNORECASE)
_FEE_TYPE_RE = re.compile(r"\bT\s*=\s*([A-Z])\b", re.IGNORECASE)


class FieldMask(enum.Flag):
    """Which fields of the in-progress reading have been observed."""

    NONE = 0
    WEIGHT = 1
    VOLUME = 2
    PRICE = 4
    FEE_TYPE = 8

    REQUIRED = WEIGHT | VOLUME | PRICE


@dataclass
class AccumulationBuffer:
    """Mutable in-progress state of the next measurement."""

    weight: float | None = None
    volume: float | None = None
    price: float | None = None
    fee_type: str | None = None
    seen: FieldMask = FieldMask.NONE
    pending_text: str = ""
    _decoder: codecs.IncrementalDecoder = field(
        default_factory=lambda: codecs.getincrementaldecoder("utf-8")(errors="replace"),
        repr=False,
    )

    @property
    def is_complete(self) -> bool:
        return FieldMask.REQUIRED in self.seen

    def set_weight(self, value: float) -> None:
        self.weight = value
        self.seen |= FieldMask.WEIGHT

    def set_volume(self, value: float) -> None:
        self.volume = value
        self.seen |= FieldMask.VOLUME

    def set_price(self, value: float) -> None:
        self.price = value
        self.seen |= FieldMask.PRICE

    def set_fee_type(self, value: str) -> None:
        self.fee_type = value
        self.seen |= FieldMask.FEE_TYPE

    def clear_fields(self) -> None:
        """Forget the collected fields; keep any partial line text."""
        self.weight = None
        self.volume = None
        self.price = None
        self.fee_type = None
        self.seen = FieldMask.NONE

    def feed_text(self, chunk: bytes) -> list[str]:
        """Decode *chunk* and return the lines it completes."""
        self.pending_text += self._decoder.decode(chunk)
        *lines, self.pending_text = _LINE_SPLIT.split(self.pending_text)
        return lines


class MeasurementAssembler:
    """Reconstruct measurements from a raw serial byte stream.

    Parameters
    ----------
    on_measurement
        Optional sink called synchronously with each finalized measurement,
        in the order the completing lines arrived.
    clock
        Source of the finalization timestamp.
    """

    def __init__(
        self,
        *,
        on_measurement: Callable[[Measurement], None] | None = None,
        clock: Callable[[], datetime] = utcnow,
        logger: logging.Logger | None = None,
    ) -> None:
        self._on_measurement = on_measurement
        self._clock = clock
        self._logger = logger or _logger
        self._buffer = AccumulationBuffer()

    @property
    def buffer(self) -> AccumulationBuffer:
        return self._buffer

    def consume(self, chunk: bytes) -> list[Measurement]:
        """Feed a chunk of raw bytes; return the measurements it completed."""
        emitted: list[Measurement] = []
        for line in self._buffer.feed_text(chunk):
            measurement = self.handle_line(line)
            if measurement is not None:
                emitted.append(measurement)
        return emitted

    def handle_line(self, raw_line: str) -> Measurement | None:
        """Apply one complete line; return a measurement if it finalized one."""
        line = raw_line.strip()
        if not line:
            return None

        buffer = self._buffer
        match = _WEIGHT_RE.search(line)
        if match:
            value = safe_float(match.group(1))
            if value is not None:
                buffer.set_weight(value)

        match = _VOLUME_RE.search(line)
        if match:
            value = safe_float(match.group(1))
            if value is not None:
                buffer.set_volume(value)

        match = _PRICE_RE.search(line)
        if match:
            value = safe_float(match.group(1))
            if value is not None:
                buffer.set_price(value)

        match = _FEE_TYPE_RE.search(line)
        if match:
            code = fee_type_code(match.group(1))
            if code is not None:
                buffer.set_fee_type(code)

        if not buffer.is_complete:
            return None
        return self._finalize()

    def reset(self) -> None:
        """Drop all in-progress state, including any partial line."""
        self._buffer = AccumulationBuffer()

    def _finalize(self) -> Measurement:
        buffer = self._buffer
        assert buffer.weight is not None and buffer.volume is not None and buffer.price is not None  # noqa: S101
        measurement = Measurement(
            weight=buffer.weight,
            volume=buffer.volume,
            price=buffer.price,
            fee_type=buffer.fee_type,
            timestamp=self._clock(),
        )
        buffer.clear_fields()
        self._logger.debug(
            "Measurement finalized weight=%s volume=%s price=%s fee_type=%s",
            measurement.weight,
            measurement.volume,
            measurement.price,
            measurement.fee_type,
        )
        if self._on_measurement is not None:
            self._on_measurement(measurement)
        return measurement
