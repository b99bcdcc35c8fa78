"""Live fan-out hub.

Holds the single current :class:`~parcelfeed.models.LivePayload` and a set
of subscribers. Every broadcast is encoded once and queued on each
subscriber synchronously, so all subscribers observe broadcasts in the
same order. Each subscriber drains its own queue on its own task; a slow
or broken connection only ever affects itself.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

from parcelfeed.live.frames import encode_keepalive_frame, encode_payload_frame, encode_retry_frame
from parcelfeed.models.live import LivePayload
from parcelfeed.store import RecordStore

_logger = logging.getLogger(__name__)


class Connection(Protocol):
    """Anything frames can be pushed to (e.g. ``aiohttp.web.StreamResponse``)."""

    async def write(self, data: bytes) -> None:
        ...


class Subscriber:
    """A live connection plus its outbound queue and keep-alive timer."""

    def __init__(
        self,
        connection: Connection,
        *,
        keepalive_interval: float,
        on_close: Callable[[Subscriber], None],
        logger: logging.Logger | None = None,
    ) -> None:
        self.connection = connection
        self._keepalive_interval = keepalive_interval
        self._on_close = on_close
        self._logger = logger or _logger
        self._queue: asyncio.Queue[bytes] = asyncio.Queue()
        self._closed = asyncio.Event()
        self._pump_task: asyncio.Task[None] | None = None
        self._keepalive_handle: asyncio.TimerHandle | None = None

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def push(self, frame: bytes) -> None:
        """Queue *frame* for delivery; ignored once closed."""
        if self._closed.is_set():
            return
        self._queue.put_nowait(frame)

    def start(self) -> None:
        loop = asyncio.get_running_loop()
        self._pump_task = loop.create_task(self._pump())
        self._schedule_keepalive(loop)

    def _schedule_keepalive(self, loop: asyncio.AbstractEventLoop) -> None:
        self._keepalive_handle = loop.call_later(self._keepalive_interval, self._send_keepalive)

    def _send_keepalive(self) -> None:
        self._keepalive_handle = None
        if self._closed.is_set():
            return
        self.push(encode_keepalive_frame())
        self._schedule_keepalive(asyncio.get_running_loop())

    async def _pump(self) -> None:
        while True:
            frame = await self._queue.get()
            try:
                await self.connection.write(frame)
            except Exception as exc:
                self._logger.debug("Live subscriber write failed, dropping: %s", exc)
                self.close()
                return

    def close(self) -> None:
        """Stop delivery, cancel the keep-alive timer and leave the hub."""
        if self._closed.is_set():
            return
        self._closed.set()

        handle = self._keepalive_handle
        self._keepalive_handle = None
        if handle is not None:
            handle.cancel()

        task = self._pump_task
        self._pump_task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

        self._on_close(self)

    async def wait_closed(self) -> None:
        await self._closed.wait()


class LiveHub:
    """Keeps the current live payload and fans it out to subscribers.

    Parameters
    ----------
    store
        Used once, lazily, to seed the current payload from the most recent
        stored record when a subscriber arrives before any broadcast.
    keepalive_interval
        Seconds between keep-alive frames per subscriber.
    retry_hint_ms
        Reconnect delay advertised to subscribers in the SSE ``retry`` frame.
    """

    def __init__(
        self,
        *,
        store: RecordStore | None = None,
        keepalive_interval: float = 25.0,
        retry_hint_ms: int = 5000,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._keepalive_interval = keepalive_interval
        self._retry_hint_ms = retry_hint_ms
        self._logger = logger or _logger
        self._latest: LivePayload | None = None
        self._subscribers: set[Subscriber] = set()
        self._seed_task: asyncio.Task[None] | None = None

    @property
    def subscribers(self) -> frozenset[Subscriber]:
        return frozenset(self._subscribers)

    @property
    def current(self) -> LivePayload | None:
        """The current payload, or ``None`` if nothing is known yet."""
        return self._latest

    def get_latest(self) -> LivePayload:
        """The current payload; the all-null payload when nothing is known."""
        latest = self._latest
        return latest if latest is not None else LivePayload.empty()

    def broadcast(self, payload: LivePayload) -> None:
        """Make *payload* current and queue it on every subscriber."""
        self._latest = payload
        frame = encode_payload_frame(payload)
        for subscriber in tuple(self._subscribers):
            subscriber.push(frame)

    async def ensure_latest(self) -> LivePayload:
        """Return the current payload, seeding it from the store on first use."""
        if self._latest is None and self._store is not None:
            if self._seed_task is None:
                self._seed_task = asyncio.get_running_loop().create_task(self._seed_from_store())
            await asyncio.shield(self._seed_task)
        return self.get_latest()

    async def _seed_from_store(self) -> None:
        assert self._store is not None  # noqa: S101
        try:
            record = await self._store.find_latest()
        except Exception:
            self._logger.warning("Initial live payload lookup failed", exc_info=True)
            return
        # A broadcast that landed while the lookup was in flight is newer.
        if record is None or self._latest is not None:
            return
        self._latest = LivePayload.from_record(record)

    async def subscribe(self, connection: Connection) -> Subscriber:
        """Register *connection* and start delivering frames to it.

        The subscriber first receives a retry hint, then the current
        payload, then every later broadcast in order.
        """
        subscriber = Subscriber(
            connection,
            keepalive_interval=self._keepalive_interval,
            on_close=self._forget,
            logger=self._logger,
        )
        subscriber.push(encode_retry_frame(self._retry_hint_ms))
        await self.ensure_latest()

        # No suspension point between registering and queueing the snapshot.
        self._subscribers.add(subscriber)
        subscriber.push(encode_payload_frame(self.get_latest()))
        subscriber.start()
        self._logger.debug("Live subscriber added, active=%d", len(self._subscribers))
        return subscriber

    def unsubscribe(self, subscriber: Subscriber) -> None:
        subscriber.close()

    def _forget(self, subscriber: Subscriber) -> None:
        self._subscribers.discard(subscriber)
        self._logger.debug("Live subscriber removed, active=%d", len(self._subscribers))

    async def close(self) -> None:
        """Disconnect every subscriber."""
        for subscriber in tuple(self._subscribers):
            subscriber.close()
        task = self._seed_task
        if task is not None and not task.done():
            self._seed_task = None
            task.cancel()
