"""Window session: one logical window displayed by browser tabs.

The session owns the listener (a uvicorn server on a socket it binds
itself), the ordered list of connected channels and the drawing surface.
It runs entirely on one asyncio event loop; channel bookkeeping and the
startup result are only touched from that loop, so no locking is needed.

Lifecycle::

    initializing --> ready --> closing --> closed
          \\
           --> error

Example usage::

    session = await open_window(WindowConfig(title="Demo", width=320, height=240))
    session.on("pointerdown", lambda event: print(event.x, event.y))
    session.surface.fill((255, 0, 0, 255))
    session.draw()
    await session.wait_closed()
"""

from __future__ import annotations

import asyncio
import logging
import socket
from typing import Any

import uvicorn

from tabwindow.config.settings import DEFAULT_HEIGHT, DEFAULT_WIDTH, WindowConfig
from tabwindow.domain.models import EXIT_EVENT_NAME, ControlEvent, SessionEvent, SessionState
from tabwindow.endpoint.channel import EventChannel
from tabwindow.endpoint.server import create_app
from tabwindow.errors import (
    BindError,
    ChannelTransportError,
    SessionStateError,
    WindowError,
)
from tabwindow.surface.array import ArraySurface
from tabwindow.surface.base import DrawingSurface, frame_size
from tabwindow.surface.convert import PixelSource, adapt_surface, surface_size, to_rgba_bytes
from tabwindow.window.emitter import EventEmitter, Listener
from tabwindow.window.launcher import Launcher, build_launch_url, launch, log_url, open_browser
from tabwindow.window.settle import SettleOnce

logger = logging.getLogger(__name__)

_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.INITIALIZING: frozenset({SessionState.READY, SessionState.ERROR}),
    SessionState.READY: frozenset({SessionState.CLOSING}),
    SessionState.CLOSING: frozenset({SessionState.CLOSED}),
    SessionState.ERROR: frozenset(),
    SessionState.CLOSED: frozenset(),
}

_RESERVED_EVENT_NAMES = frozenset(e.value for e in SessionEvent)

_STARTUP_POLL_INTERVAL = 0.01


def bind_socket(host: str, port: int) -> socket.socket:
    """Bind a TCP socket for the listener; ``::`` is bound dual-stack.

    Raises:
        BindError: If the address cannot be bound.
    """
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    try:
        sock = socket.socket(family, socket.SOCK_STREAM)
    except OSError as e:
        raise BindError(f"Cannot create a socket for {host}: {e}", host=host, port=port) from e
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        if family == socket.AF_INET6 and host == "::":
            sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 0)
        sock.bind((host, port))
    except OSError as e:
        sock.close()
        raise BindError(f"Cannot bind {host}:{port}: {e}", host=host, port=port) from e
    return sock


class WindowSession:
    """A remote-rendered window served to browser tabs.

    Configuration is fixed at creation and exposed read-only; the state and
    the channel list can only change through the session's own lifecycle.

    Args:
        config: Window configuration. Unset width/height are inherited from
            ``surface``, falling back to 1280x720.
        surface: Optional caller-owned pixel source (``DrawingSurface``,
            numpy RGBA array, PIL image or any object with
            ``get_image_data``). Without pixel access a fresh
            ``ArraySurface`` is created instead.
        launcher: Coroutine function called with the session URL once the
            listener is bound. Defaults to opening the system browser, or
            to only logging the URL when ``config.launch_browser`` is off.
    """

    def __init__(
        self,
        config: WindowConfig | None = None,
        *,
        surface: Any = None,
        launcher: Launcher | None = None,
    ) -> None:
        config = config or WindowConfig()
        bound = adapt_surface(surface)
        size = surface_size(bound if bound is not None else surface)
        width = config.width or (size[0] if size else DEFAULT_WIDTH)
        height = config.height or (size[1] if size else DEFAULT_HEIGHT)
        if bound is None:
            bound = ArraySurface(width, height)
        elif size is not None and size != (width, height):
            logger.warning(
                "Surface is %dx%d but the window is %dx%d; its frames will be dropped",
                size[0], size[1], width, height,
            )

        self._config = config.model_copy(update={"width": width, "height": height})
        self._surface: DrawingSurface = bound
        if launcher is None:
            launcher = open_browser if config.launch_browser else log_url
        self._launcher = launcher

        self._state = SessionState.INITIALIZING
        self._host = config.host
        self._port = config.port
        self._channels: list[EventChannel] = []
        self._events = EventEmitter()
        self._app = create_app(self)
        self._server: uvicorn.Server | None = None
        self._serve_task: asyncio.Task[None] | None = None
        self._result: SettleOnce[WindowSession] | None = None
        self._closed = asyncio.Event()

    def __repr__(self) -> str:
        return (
            f"<WindowSession {self.title!r} {self.width}x{self.height} "
            f"{self._state.value} at {self._host}:{self._port}>"
        )

    # -- read-only views ----------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def config(self) -> WindowConfig:
        """Frozen configuration with the resolved width and height."""
        return self._config

    @property
    def title(self) -> str:
        return self._config.title

    @property
    def width(self) -> int:
        return self._config.width

    @property
    def height(self) -> int:
        return self._config.height

    @property
    def frame_size(self) -> int:
        return frame_size(self.width, self.height)

    @property
    def host(self) -> str:
        """Listen address; the actual bound address once open."""
        return self._host

    @property
    def port(self) -> int:
        """Listen port; the OS-assigned port once open."""
        return self._port

    @property
    def url(self) -> str:
        """Address the browser is pointed at (``localhost`` for wildcards)."""
        return build_launch_url(self._host, self._port)

    @property
    def socket_url(self) -> str:
        return build_launch_url(self._host, self._port, scheme="ws")

    @property
    def channels(self) -> tuple[EventChannel, ...]:
        """Connected channels in connection order."""
        return tuple(self._channels)

    @property
    def surface(self) -> DrawingSurface:
        return self._surface

    @property
    def app(self):
        """The ASGI application served on the listener."""
        return self._app

    # -- events ---------------------------------------------------------------

    def on(self, name: str, listener: Listener) -> Listener:
        """Listen for a control event name or a ``SessionEvent``."""
        return self._events.on(name, listener)

    def once(self, name: str, listener: Listener) -> Listener:
        return self._events.once(name, listener)

    def off(self, name: str, listener: Listener | None = None) -> None:
        self._events.off(name, listener)

    # -- lifecycle -----------------------------------------------------------

    async def open(self) -> WindowSession:
        """Bind the listener, launch the browser and wait for the outcome.

        Returns:
            The session, now ``ready``.

        Raises:
            BindError: If the listener could not be bound.
            LaunchError: If the launcher failed after binding.
            SessionStateError: If ``open`` was already called.
        """
        if self._result is not None or self._state is not SessionState.INITIALIZING:
            raise SessionStateError(f"Session already opened (state={self._state.value})")
        self._result = SettleOnce()

        try:
            sock = bind_socket(self._config.host, self._config.port)
        except BindError as e:
            self._fail(e)
            return await self._result

        self._host, self._port = sock.getsockname()[:2]
        logger.info("Window %r listening on %s:%d", self.title, self._host, self._port)

        self._server = uvicorn.Server(
            uvicorn.Config(
                self._app,
                lifespan="off",
                log_config=None,
                log_level="warning",
                access_log=False,
            )
        )
        self._serve_task = asyncio.create_task(
            self._server.serve(sockets=[sock]), name=f"tabwindow-serve-{self._port}"
        )
        self._serve_task.add_done_callback(self._on_serve_done)

        try:
            await self._wait_until_listening()
            await launch(self._launcher, self.url)
            if self._serve_task.done():
                raise BindError(
                    f"Listener on {self._host}:{self._port} stopped before the window was ready",
                    host=self._host,
                    port=self._port,
                )
        except WindowError as e:
            self._fail(e)
            await self._stop_server()
        else:
            if self._result.resolve(self):
                self._transition(SessionState.READY)
                logger.info("Window %r ready at %s", self.title, self.url)
        return await self._result

    async def close(self) -> None:
        """Stop the listener and wait until the session is closed.

        Safe to call repeatedly or concurrently; every caller returns once
        the ``exit`` notification has been emitted.
        """
        if self._state is SessionState.INITIALIZING:
            raise SessionStateError("Cannot close a session that is still opening")
        if self._state is SessionState.ERROR:
            return
        if self._state is SessionState.READY:
            self._begin_close("closed by caller")
        await self._closed.wait()

    async def wait_closed(self) -> None:
        """Wait until the session is closed, by the caller or by a tab."""
        await self._closed.wait()

    async def __aenter__(self) -> WindowSession:
        if self._result is None:
            await self.open()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        if self._state in (SessionState.READY, SessionState.CLOSING):
            await self.close()

    # -- drawing --------------------------------------------------------------

    def draw(self, source: PixelSource | None = None) -> int:
        """Broadcast the current pixels to every open channel.

        Args:
            source: Pixel source to read from. None reads the session's
                bound surface.

        Returns:
            The number of channels the frame was queued on.
        """
        self._check_drawable()
        if source is None:
            data = self._surface.get_image_data()
        else:
            data = to_rgba_bytes(source)
        return self.draw_data(data)

    def draw_data(self, data: bytes | bytearray | memoryview) -> int:
        """Broadcast an encoded RGBA buffer verbatim, in connection order.

        Delivery is not awaited; a channel that fails to send reports it
        through ``channelError`` on its own.
        """
        self._check_drawable()
        frame = bytes(data)
        queued = 0
        for channel in list(self._channels):
            if channel.send_frame(frame):
                queued += 1
        return queued

    # -- channel callbacks ------------------------------------------------------

    def _attach_channel(self, channel: EventChannel) -> None:
        self._channels.append(channel)
        logger.info("Channel #%d connected (%d open)", channel.id, len(self._channels))
        self._events.emit(SessionEvent.CHANNEL_OPEN, channel)

    def _detach_channel(self, channel: EventChannel) -> None:
        try:
            self._channels.remove(channel)
        except ValueError:
            logger.debug("Channel #%d was not attached", channel.id)
        logger.info("Channel #%d disconnected (%d open)", channel.id, len(self._channels))
        self._events.emit(SessionEvent.CHANNEL_CLOSE, channel)

    def _report_channel_error(self, channel: EventChannel, error: ChannelTransportError) -> None:
        self._events.emit(SessionEvent.CHANNEL_ERROR, channel, error)

    def _handle_control_event(self, channel: EventChannel, event: ControlEvent) -> None:
        if event.name == EXIT_EVENT_NAME:
            if self._state is SessionState.READY:
                self._begin_close(f"exit requested by channel #{channel.id}")
            return
        if event.name in _RESERVED_EVENT_NAMES:
            logger.debug("Channel #%d sent reserved event name %r", channel.id, event.name)
            return
        self._events.emit(event.name, event)

    # -- internals --------------------------------------------------------------

    def _transition(self, new_state: SessionState) -> None:
        if new_state not in _TRANSITIONS[self._state]:
            raise SessionStateError(
                f"Illegal transition {self._state.value} -> {new_state.value}"
            )
        logger.debug("Window %r: %s -> %s", self.title, self._state.value, new_state.value)
        self._state = new_state

    def _fail(self, error: WindowError) -> None:
        if self._result is not None and self._result.reject(error):
            self._transition(SessionState.ERROR)
            logger.error("Window %r failed to open: %s", self.title, error)

    def _begin_close(self, reason: str) -> None:
        self._transition(SessionState.CLOSING)
        logger.info("Closing window %r (%s)", self.title, reason)
        if self._server is not None:
            self._server.should_exit = True

    def _finish_close(self) -> None:
        self._transition(SessionState.CLOSED)
        self._closed.set()
        logger.info("Window %r closed", self.title)
        self._events.emit(SessionEvent.EXIT)

    def _check_drawable(self) -> None:
        if self._state in (SessionState.CLOSED, SessionState.ERROR):
            raise SessionStateError(f"Cannot draw on a {self._state.value} session")

    async def _wait_until_listening(self) -> None:
        assert self._server is not None and self._serve_task is not None
        while not self._server.started:
            if self._serve_task.done():
                cause = None if self._serve_task.cancelled() else self._serve_task.exception()
                raise BindError(
                    f"Listener on {self._host}:{self._port} stopped during startup",
                    host=self._host,
                    port=self._port,
                ) from cause
            await asyncio.sleep(_STARTUP_POLL_INTERVAL)

    async def _stop_server(self) -> None:
        if self._server is None or self._serve_task is None:
            return
        self._server.should_exit = True
        await asyncio.wait({self._serve_task})

    def _on_serve_done(self, task: asyncio.Task[None]) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.error("Listener of window %r crashed", self.title, exc_info=task.exception())
        if self._state is SessionState.READY:
            # stopped without close(), e.g. uvicorn caught a signal
            self._begin_close("listener stopped")
        if self._state is SessionState.CLOSING:
            self._finish_close()


async def open_window(
    config: WindowConfig | None = None,
    *,
    surface: Any = None,
    launcher: Launcher | None = None,
    **overrides: Any,
) -> WindowSession:
    """Create a session and wait until it is ready.

    Keyword overrides (``title``, ``width``, ``host``...) are applied on top
    of ``config`` and validated like the config itself.

    Raises:
        BindError: If the listener could not be bound.
        LaunchError: If the browser could not be launched.
    """
    config = config or WindowConfig()
    if overrides:
        config = WindowConfig.model_validate({**config.model_dump(), **overrides})
    session = WindowSession(config, surface=surface, launcher=launcher)
    return await session.open()
