"""Ingestion link supervision.

Owns the serial link lifecycle:

    CLOSED -> OPENING -> OPEN -> SCHEDULED_REOPEN -> OPENING -> ...

Open failures, runtime errors and unexpected closes all lead to a single
pending reopen after ``reopen_delay`` seconds. Retry never gives up; the
device can be unplugged or power-cycled at any time.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Protocol

from parcelfeed._serial import SerialLink
from parcelfeed.config import FeedConfig
from parcelfeed.exceptions import FeedLinkError

_logger = logging.getLogger(__name__)


class LinkState(StrEnum):
    CLOSED = "closed"
    OPENING = "opening"
    OPEN = "open"
    SCHEDULED_REOPEN = "scheduled_reopen"


class Link(Protocol):
    """Structural interface of an ingestion link.

    ``open`` and ``close`` may block and are run in an executor; the
    observer callbacks are invoked on the event loop thread.
    """

    def attach(
        self,
        *,
        on_data: Callable[[bytes], None],
        on_error: Callable[[BaseException], None],
        on_close: Callable[[], None],
    ) -> None:
        ...

    def detach(self) -> None:
        ...

    def open(self) -> None:
        ...

    def close(self) -> None:
        ...


LinkFactory = Callable[[FeedConfig, asyncio.AbstractEventLoop], Link]


def serial_link_factory(config: FeedConfig, loop: asyncio.AbstractEventLoop) -> Link:
    assert config.serial_port is not None  # noqa: S101
    return SerialLink(config.serial_port, baud_rate=config.baud_rate, loop=loop)


class LinkManager:
    """Keep the ingestion link open and forward its data.

    Parameters
    ----------
    config
        Supplies the port, baud rate, enable flag and reopen delay.
    on_data
        Receives every chunk read while the link is up.
    link_factory
        Builds the (not yet open) link; defaults to a pyserial link.
    """

    def __init__(
        self,
        config: FeedConfig,
        *,
        on_data: Callable[[bytes], None],
        link_factory: LinkFactory = serial_link_factory,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._on_data = on_data
        self._link_factory = link_factory
        self._logger = logger or _logger
        self._loop: asyncio.AbstractEventLoop | None = None
        self._link: Link | None = None
        self._state = LinkState.CLOSED
        self._reopen_handle: asyncio.TimerHandle | None = None
        self._open_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> LinkState:
        return self._state

    @property
    def link(self) -> Link | None:
        return self._link

    @property
    def reopen_pending(self) -> bool:
        return self._reopen_handle is not None

    async def start(self) -> None:
        """Create the link and try to open it; no-op when ingestion is off."""
        config = self._config
        if not config.ingest_active:
            if not config.ingest_enabled:
                self._logger.info("Serial ingestion disabled by configuration")
            else:
                self._logger.info("Serial ingestion not started: no serial port configured")
            return
        if self._link is not None:
            self._logger.debug("Serial ingestion already running")
            return

        loop = asyncio.get_running_loop()
        self._loop = loop
        try:
            link = self._link_factory(config, loop)
        except FeedLinkError as exc:
            self._logger.error("Failed to initialise serial link: %s", exc)
            return

        link.attach(on_data=self._handle_data, on_error=self._handle_error, on_close=self._handle_close)
        self._link = link
        await self._open()

    async def stop(self) -> None:
        """Cancel any pending reopen, detach observers and close the link."""
        handle = self._reopen_handle
        self._reopen_handle = None
        if handle is not None:
            handle.cancel()

        link = self._link
        self._link = None
        self._state = LinkState.CLOSED
        if link is None:
            return

        link.detach()
        open_task = self._open_task
        self._open_task = None
        if open_task is not None and not open_task.done():
            # A running open cannot be interrupted; _open closes the link once it returns.
            await asyncio.gather(open_task, return_exceptions=True)
        loop = self._loop or asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, link.close)
        except Exception:
            self._logger.debug("Error while closing serial link", exc_info=True)
        self._logger.info("Serial ingestion stopped")

    async def _open(self) -> None:
        link = self._link
        if link is None or self._state in (LinkState.OPENING, LinkState.OPEN):
            return
        self._state = LinkState.OPENING
        loop = self._loop or asyncio.get_running_loop()

        try:
            await loop.run_in_executor(None, link.open)
        except Exception as exc:
            if self._link is link:
                self._logger.warning(
                    "Serial link open failed (%s): %s",
                    self._config.serial_port,
                    exc,
                    exc_info=not isinstance(exc, FeedLinkError),
                )
                self._state = LinkState.CLOSED
                self._schedule_reopen()
            return

        if self._link is not link:
            # stop() ran while the open was in flight.
            await loop.run_in_executor(None, link.close)
            return
        if self._state is LinkState.OPENING:
            self._state = LinkState.OPEN
            self._logger.info(
                "Serial link opened on %s @ %d baud",
                self._config.serial_port,
                self._config.baud_rate,
            )

    def _schedule_reopen(self) -> None:
        if self._link is None or self._reopen_handle is not None:
            return
        loop = self._loop or asyncio.get_running_loop()
        self._state = LinkState.SCHEDULED_REOPEN
        self._logger.debug("Serial link reopen scheduled in %.1fs", self._config.reopen_delay)
        self._reopen_handle = loop.call_later(self._config.reopen_delay, self._reopen)

    def _reopen(self) -> None:
        self._reopen_handle = None
        if self._link is None:
            return
        self._state = LinkState.CLOSED
        loop = self._loop or asyncio.get_running_loop()
        self._open_task = loop.create_task(self._open())

    def _handle_data(self, chunk: bytes) -> None:
        if self._state in (LinkState.OPENING, LinkState.OPEN):
            self._on_data(chunk)

    def _handle_error(self, exc: BaseException) -> None:
        self._logger.warning("Serial link error: %s", exc)
        self._schedule_reopen()

    def _handle_close(self) -> None:
        self._logger.warning("Serial link closed unexpectedly")
        self._schedule_reopen()
