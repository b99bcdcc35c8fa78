"""aiohttp surface: the SSE live stream and a latest-payload endpoint."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from aiohttp import web

from parcelfeed._constants import SSE_CONTENT_TYPE
from parcelfeed.service import FeedService

_logger = logging.getLogger(__name__)

SERVICE_KEY = web.AppKey("parcelfeed_service", FeedService)


async def live_stream(request: web.Request) -> web.StreamResponse:
    """Hold an SSE stream open and push every live payload to it."""
    service = request.app[SERVICE_KEY]
    response = web.StreamResponse(
        headers={
            "Content-Type": SSE_CONTENT_TYPE,
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        }
    )
    await response.prepare(request)

    subscriber = await service.subscribe(response)
    try:
        await subscriber.wait_closed()
    finally:
        service.hub.unsubscribe(subscriber)
    return response


async def live_latest(request: web.Request) -> web.Response:
    service = request.app[SERVICE_KEY]
    payload = await service.ensure_latest()
    return web.json_response(payload.to_wire())


async def _service_ctx(app: web.Application) -> AsyncIterator[None]:
    service = app[SERVICE_KEY]
    await service.start()
    yield
    await service.stop()


async def _close_streams(app: web.Application) -> None:
    # Open SSE handlers would otherwise hold shutdown until the timeout.
    await app[SERVICE_KEY].hub.close()


def create_app(service: FeedService, *, prefix: str = "/live") -> web.Application:
    """Build an application that serves *service* and drives its lifecycle."""
    app = web.Application()
    app[SERVICE_KEY] = service
    app.router.add_get(f"{prefix}/stream", live_stream)
    app.router.add_get(f"{prefix}/latest", live_latest)
    app.cleanup_ctx.append(_service_ctx)
    app.on_shutdown.append(_close_streams)
    return app
