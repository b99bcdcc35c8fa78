"""Tests for the aiohttp live endpoints."""

from __future__ import annotations

import asyncio
import json

import pytest
from aiohttp.test_utils import TestClient, TestServer

from parcelfeed.config import FeedConfig
from parcelfeed.service import FeedService
from parcelfeed.store import InMemoryRecordStore
from parcelfeed.web import create_app


async def _read_frame(resp) -> bytes:  # noqa: ANN001
    lines: list[bytes] = []
    while True:
        line = await asyncio.wait_for(resp.content.readline(), timeout=2)
        if line in (b"\n", b""):
            return b"".join(lines)
        lines.append(line)


def _service() -> FeedService:
    return FeedService(FeedConfig(keepalive_interval=60.0), store=InMemoryRecordStore())


@pytest.mark.asyncio
async def test_latest_is_all_null_before_any_reading() -> None:
    async with TestClient(TestServer(create_app(_service()))) as client:
        resp = await client.get("/live/latest")

        assert resp.status == 200
        assert await resp.json() == {
            "weight": None,
            "volume": None,
            "price": None,
            "feeType": None,
            "timestamp": None,
            "_id": None,
        }


@pytest.mark.asyncio
async def test_stream_sends_retry_snapshot_and_updates() -> None:
    service = _service()
    async with TestClient(TestServer(create_app(service))) as client:
        resp = await client.get("/live/stream")

        assert resp.status == 200
        assert resp.headers["Content-Type"].startswith("text/event-stream")
        assert resp.headers["Cache-Control"] == "no-cache"

        assert await _read_frame(resp) == b"retry: 5000\n"
        snapshot = await _read_frame(resp)
        assert json.loads(snapshot[len(b"data: ") :])["weight"] is None

        service.publish_record({"id": "r-1", "weight": 1.5, "volume": 2, "fee": 3, "feeType": "A"})
        update = json.loads((await _read_frame(resp))[len(b"data: ") :])

        assert update["_id"] == "r-1"
        assert update["price"] == 3.0
        resp.close()
