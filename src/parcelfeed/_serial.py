"""Internal serial-link runtime.

pyserial reads on a background :class:`serial.threaded.ReaderThread`;
every event it produces is marshalled onto the asyncio loop with
``call_soon_threadsafe`` so that no parcelfeed state is touched off the
loop thread.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from typing import Any

import serial
import serial.threaded

from parcelfeed.exceptions import FeedLinkError

_logger = logging.getLogger(__name__)


class _ReaderProtocol(serial.threaded.Protocol):
    """Forwards reader-thread callbacks to the owning link, tagged by generation."""

    def __init__(self, link: SerialLink, generation: int) -> None:
        self._link = link
        self._generation = generation

    def data_received(self, data: bytes) -> None:
        self._link._post(self._generation, "data", bytes(data))

    def connection_lost(self, exc: BaseException | None) -> None:
        if exc is None:
            self._link._post(self._generation, "close")
        else:
            self._link._post(self._generation, "error", exc)


class SerialLink:
    """Threaded pyserial link that emits data/error/close events onto an asyncio loop.

    The port is created closed; :meth:`open` and :meth:`close` block and are
    meant to run in an executor. Events from a reader that has since been
    replaced or closed are dropped.
    """

    def __init__(
        self,
        url: str,
        *,
        baud_rate: int,
        loop: asyncio.AbstractEventLoop,
        logger: logging.Logger | None = None,
    ) -> None:
        self._url = url
        self._loop = loop
        self._logger = logger or _logger
        try:
            self._serial = serial.serial_for_url(url, baudrate=baud_rate, do_not_open=True)
        except (serial.SerialException, ValueError) as exc:
            raise FeedLinkError(f"Cannot initialise serial link {url}: {exc}", port=url) from exc
        self._reader: serial.threaded.ReaderThread | None = None
        self._generation = 0
        self._lock = threading.Lock()

        self.on_data: Callable[[bytes], None] | None = None
        self.on_error: Callable[[BaseException], None] | None = None
        self.on_close: Callable[[], None] | None = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def is_open(self) -> bool:
        reader = self._reader
        return reader is not None and reader.alive and bool(self._serial.is_open)

    def attach(
        self,
        *,
        on_data: Callable[[bytes], None],
        on_error: Callable[[BaseException], None],
        on_close: Callable[[], None],
    ) -> None:
        self.on_data = on_data
        self.on_error = on_error
        self.on_close = on_close

    def detach(self) -> None:
        self.on_data = None
        self.on_error = None
        self.on_close = None

    def open(self) -> None:
        """Open the port and start the reader thread (blocking)."""
        with self._lock:
            self._stop_reader()
            try:
                self._serial.open()
            except (serial.SerialException, OSError, ValueError) as exc:
                raise FeedLinkError(f"Cannot open serial link {self._url}: {exc}", port=self._url) from exc

            self._generation += 1
            generation = self._generation
            reader = serial.threaded.ReaderThread(self._serial, lambda: _ReaderProtocol(self, generation))
            reader.daemon = True
            reader.start()
            self._reader = reader
            self._logger.debug("Serial reader started url=%s generation=%d", self._url, generation)

    def close(self) -> None:
        """Stop the reader thread and close the port (blocking)."""
        with self._lock:
            self._generation += 1
            self._stop_reader()

    def _stop_reader(self) -> None:
        reader = self._reader
        self._reader = None
        if reader is not None:
            reader.close()
        elif self._serial.is_open:
            self._serial.close()

    # ------------------------------------------------------------------
    # Reader thread -> loop
    # ------------------------------------------------------------------

    def _post(self, generation: int, kind: str, *args: Any) -> None:
        try:
            self._loop.call_soon_threadsafe(self._dispatch, generation, kind, args)
        except RuntimeError:
            self._logger.debug("Serial event dropped, loop closed kind=%s", kind)

    def _dispatch(self, generation: int, kind: str, args: tuple[Any, ...]) -> None:
        if generation != self._generation:
            return
        callback: Callable[..., None] | None
        if kind == "data":
            callback = self.on_data
        elif kind == "error":
            callback = self.on_error
        else:
            callback = self.on_close
        if callback is not None:
            callback(*args)
