"""Server-Sent Events frame encoding."""

from __future__ import annotations

import json

from parcelfeed._constants import KEEPALIVE_FRAME
from parcelfeed.models.live import LivePayload


def encode_payload_frame(payload: LivePayload) -> bytes:
    body = json.dumps(payload.to_wire(), separators=(",", ":"))
    return f"data: {body}\n\n".encode()


def encode_retry_frame(retry_ms: int) -> bytes:
    return f"retry: {int(retry_ms)}\n\n".encode()


def encode_keepalive_frame() -> bytes:
    return KEEPALIVE_FRAME
