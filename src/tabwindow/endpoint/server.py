"""FastAPI application served on a session's listener.

Two routes share every path: plain HTTP requests get the bootstrap page,
WebSocket upgrades become event channels of the session.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import FastAPI, WebSocket
from fastapi.responses import HTMLResponse

from tabwindow.endpoint.bootstrap import render_bootstrap_page
from tabwindow.endpoint.channel import EventChannel

if TYPE_CHECKING:
    from tabwindow.window.session import WindowSession

logger = logging.getLogger(__name__)

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_app(session: WindowSession) -> FastAPI:
    """Create the single-page application for ``session``.

    The page is rendered per request because the port is only known once
    the listener is bound.
    """
    app = FastAPI(
        title="tabwindow",
        description="Bootstrap page and event channels of one window session",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.session = session

    @app.api_route("/{path:path}", methods=ALL_METHODS, include_in_schema=False)
    async def bootstrap_page(path: str) -> HTMLResponse:
        s: WindowSession = app.state.session
        logger.debug("Serving bootstrap page for /%s", path)
        return HTMLResponse(
            render_bootstrap_page(
                title=s.title,
                width=s.width,
                height=s.height,
                socket_url=s.socket_url,
            )
        )

    @app.websocket("/{path:path}")
    async def channel_endpoint(websocket: WebSocket, path: str) -> None:
        s: WindowSession = app.state.session
        await websocket.accept()
        channel = EventChannel(s, websocket)
        logger.debug("Accepted channel #%d on /%s", channel.id, path)
        await channel.run()

    return app
