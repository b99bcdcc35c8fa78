"""Tests for the serial line assembler."""

from __future__ import annotations

from datetime import UTC, datetime

from parcelfeed.ingestion.assembler import FieldMask, MeasurementAssembler
from parcelfeed.models.measurement import Measurement


def _dt() -> datetime:
    return datetime(2026, 1, 1, tzinfo=UTC)


def _assembler(**kwargs) -> MeasurementAssembler:
    return MeasurementAssembler(clock=_dt, **kwargs)


def test_emits_once_weight_volume_and_price_seen() -> None:
    assembler = _assembler()

    assert assembler.consume(b"Average Weight: 1.25\n") == []
    assert assembler.consume(b"Volume: 300\n") == []
    emitted = assembler.consume(b"Fee: Rs. 45.5\n")

    assert emitted == [
        Measurement(weight=1.25, volume=300.0, price=45.5, fee_type=None, timestamp=_dt()),
    ]


def test_fee_type_defaults_to_unknown() -> None:
    assembler = _assembler()
    (measurement,) = assembler.consume(b"Weight: 1\nVolume: 2\nFee: Rs 3\n")

    assert measurement.fee_type is None
    assert measurement.fee_type_code == "U"


def test_fields_accepted_in_any_order_and_case() -> None:
    assembler = _assembler()
    (measurement,) = assembler.consume(b"t = b\nFEE: rs 10\naverage volume: 2.5\nweight: -0.5\n")

    assert measurement.fee_type == "B"
    assert measurement.price == 10.0
    assert measurement.volume == 2.5
    assert measurement.weight == -0.5


def test_line_split_across_chunks_is_reassembled() -> None:
    assembler = _assembler()
    emitted: list[Measurement] = []
    for chunk in (b"Wei", b"ght: 2.5\nVol", b"ume: 10\r", b"\nFee: Rs", b"5\n"):
        emitted.extend(assembler.consume(chunk))

    assert len(emitted) == 1
    assert emitted[0].weight == 2.5
    assert emitted[0].volume == 10.0
    assert emitted[0].price == 5.0


def test_trailing_partial_line_waits_for_newline() -> None:
    assembler = _assembler()

    assert assembler.consume(b"Weight: 1\nVolume: 2\nFee: Rs 3") == []
    assert assembler.buffer.pending_text == "Fee: Rs 3"

    assert len(assembler.consume(b"\n")) == 1


def test_multibyte_character_split_across_chunks() -> None:
    assembler = _assembler()
    data = "Weight: 4 été\nVolume: 1\nFee: Rs 2\n".encode()
    split = data.index(b"\xc3") + 1

    emitted = assembler.consume(data[:split]) + assembler.consume(data[split:])

    assert [m.weight for m in emitted] == [4.0]


def test_unrecognized_lines_are_ignored() -> None:
    assembler = _assembler()

    assert assembler.consume(b"boot ok\nSensor ready\nTEMP=21\n\n   \n") == []
    assert assembler.buffer.seen == FieldMask.NONE


def test_fee_type_requires_marker() -> None:
    assembler = _assembler()
    assembler.consume(b"Tare complete\n")
    assert assembler.buffer.fee_type is None

    assembler.consume(b"Category T=c\n")
    assert assembler.buffer.fee_type == "C"
    assert FieldMask.FEE_TYPE in assembler.buffer.seen


def test_non_finite_number_leaves_field_unset() -> None:
    assembler = _assembler()
    huge = b"Weight: " + b"9" * 400 + b"\n"

    assert assembler.consume(huge + b"Volume: 1\nFee: Rs 2\n") == []
    assert assembler.buffer.weight is None
    assert assembler.buffer.seen == FieldMask.VOLUME | FieldMask.PRICE

    assert len(assembler.consume(b"Weight: 3\n")) == 1


def test_consecutive_sets_yield_distinct_measurements() -> None:
    assembler = _assembler()
    emitted = assembler.consume(
        b"T=A\nWeight: 1\nVolume: 2\nFee: Rs 3\n"
        b"Weight: 4\nVolume: 5\nFee: Rs 6\n"
    )

    assert [(m.weight, m.volume, m.price, m.fee_type) for m in emitted] == [
        (1.0, 2.0, 3.0, "A"),
        (4.0, 5.0, 6.0, None),
    ]
    assert assembler.buffer.seen == FieldMask.NONE


def test_repeated_field_keeps_latest_value() -> None:
    assembler = _assembler()
    (measurement,) = assembler.consume(b"Weight: 1\nWeight: 1.5\nVolume: 2\nFee: Rs 3\n")

    assert measurement.weight == 1.5


def test_sink_receives_measurements_in_order() -> None:
    seen: list[float] = []
    assembler = _assembler(on_measurement=lambda m: seen.append(m.price))

    assembler.consume(b"Weight: 1\nVolume: 1\nFee: Rs 1\nWeight: 1\nVolume: 1\nFee: Rs 2\n")

    assert seen == [1.0, 2.0]


def test_reset_discards_partial_state() -> None:
    assembler = _assembler()
    assembler.consume(b"Weight: 1\nVolume: 2\nFee: Rs")

    assembler.reset()

    assert assembler.buffer.seen == FieldMask.NONE
    assert assembler.buffer.pending_text == ""
    assert assembler.consume(b" 3\n") == []
