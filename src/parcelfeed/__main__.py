"""Run the serial ingestion service with its live-feed web surface.

Configuration comes from ``PARCELFEED_*`` environment variables; the
command-line flags below override them. Records are kept in memory.
"""

from __future__ import annotations

import argparse
import logging
import sys

from aiohttp import web

from parcelfeed.config import FeedConfig
from parcelfeed.exceptions import FeedConfigError
from parcelfeed.service import FeedService
from parcelfeed.store import InMemoryRecordStore
from parcelfeed.web import create_app


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="parcelfeed",
        description="Serial parcel-measurement ingestion with a live SSE feed.",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Address to bind the web server to.")
    parser.add_argument("--port", type=int, default=8080, help="Port to bind the web server to.")
    parser.add_argument(
        "--serial-port",
        default=None,
        help="Serial device or pyserial URL (overrides PARCELFEED_SERIAL_PORT).",
    )
    parser.add_argument(
        "--baud-rate",
        type=int,
        default=None,
        help="Serial transfer rate (overrides PARCELFEED_BAUD_RATE).",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Root log level.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, object] = {}
    if args.serial_port is not None:
        overrides["serial_port"] = args.serial_port
    if args.baud_rate is not None:
        overrides["baud_rate"] = args.baud_rate
    try:
        config = FeedConfig.from_env(**overrides)
    except FeedConfigError as exc:
        print(f"parcelfeed: {exc}", file=sys.stderr)
        return 2

    service = FeedService(config, store=InMemoryRecordStore())
    web.run_app(create_app(service), host=args.host, port=args.port, print=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
