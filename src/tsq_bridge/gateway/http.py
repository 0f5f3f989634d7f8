"""FastAPI surface for the send gateway.

Routes:

* ``GET /`` — HTML usage banner with the current date/time.
* ``/send?data=...`` — publish ``data`` to the default destination.
* ``/send/{queue}?data=...`` — publish ``data`` to ``queue``.
* ``GET /health`` — consumer and channel status.

Send routes accept any common HTTP method and always answer ``text/plain``:
the payload on success, the gateway's error string on publish failure.
"""

from __future__ import annotations

import contextlib
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Annotated, Any

from fastapi import FastAPI, Header, Query
from fastapi.responses import HTMLResponse, PlainTextResponse

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from ..bootstrap import Bridge

logger = logging.getLogger("tsq_bridge.http")

SEND_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def usage_banner(now: datetime | None = None) -> str:
    """HTML usage banner stamped with *now*.

    Defaults to the server's naive local time, unlike the UTC timestamps
    stored on messages and rows.
    """
    stamp = (now or datetime.now()).strftime("%Y-%m-%d:%H-%M-%S.%f")
    return (
        f"<h1>tsq-bridge usage: Date/Time: {stamp}</h1>"
        "<h3>Usage:</h3>"
        "<b>/send?data={input string}</b> - write input string to the default queue"
        " <br>"
        "<b>/send/{queue}?data={input string}</b> - write input string to specified"
        " queue <br>"
    )


def create_app(bridge: Bridge, *, manage_lifecycle: bool = True) -> FastAPI:
    """Build the HTTP app for *bridge*.

    With ``manage_lifecycle`` the app's lifespan starts the bridge (schema,
    recovery, consumer workers) and stops it on shutdown.
    """

    @contextlib.asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        if manage_lifecycle:
            await bridge.start()
        logger.info("HTTP send surface ready")
        try:
            yield
        finally:
            if manage_lifecycle:
                await bridge.stop()
            logger.info("HTTP send surface shut down")

    app = FastAPI(title="tsq-bridge", lifespan=lifespan)
    gateway = bridge.gateway

    @app.get("/", response_class=HTMLResponse)
    async def root() -> str:
        return usage_banner()

    @app.api_route("/send", methods=SEND_METHODS, response_class=PlainTextResponse)
    async def send_default(
        data: Annotated[str, Query()],
        x_correlation_id: Annotated[str | None, Header()] = None,
    ) -> str:
        return await gateway.send(None, data, correlation_id=x_correlation_id)

    @app.api_route(
        "/send/{queue}", methods=SEND_METHODS, response_class=PlainTextResponse
    )
    async def send_to_queue(
        queue: str,
        data: Annotated[str, Query()],
        x_correlation_id: Annotated[str | None, Header()] = None,
    ) -> str:
        return await gateway.send(queue, data, correlation_id=x_correlation_id)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return await bridge.health()

    return app
