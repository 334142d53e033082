"""Event channel: one connected browser tab.

Wraps an accepted WebSocket. Text messages are decoded into control
events and handed to the owning session; frames queued by the session are
written back as binary messages by a per-channel writer task, so one slow
tab never holds up the others.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
import weakref
from contextlib import suppress
from typing import TYPE_CHECKING, Annotated, Union

from pydantic import Field, TypeAdapter, ValidationError
from starlette.websockets import WebSocket

from tabwindow.domain.models import (
    EXIT_EVENT_NAME,
    KEY_EVENT_NAMES,
    POINTER_EVENT_NAMES,
    ControlEvent,
    ExitEvent,
    GenericControlEvent,
    KeyEvent,
    PointerEvent,
)
from tabwindow.errors import ChannelProtocolError, ChannelTransportError

if TYPE_CHECKING:
    from tabwindow.window.session import WindowSession

logger = logging.getLogger(__name__)

# per-channel backlog; the oldest pending frame is dropped first
MAX_PENDING_FRAMES = 8

KNOWN_EVENT_NAMES = frozenset(POINTER_EVENT_NAMES + KEY_EVENT_NAMES + (EXIT_EVENT_NAME,))

_known_event_adapter: TypeAdapter[PointerEvent | KeyEvent | ExitEvent] = TypeAdapter(
    Annotated[Union[PointerEvent, KeyEvent, ExitEvent], Field(discriminator="name")]
)


def decode_control_event(raw: str | bytes) -> ControlEvent:
    """Decode one text message from a tab.

    Known names are validated against their model; unknown names are kept
    as ``GenericControlEvent`` with all their fields.

    Raises:
        ChannelProtocolError: If the message is not JSON, not an object,
            its ``type`` is not ``"event"`` or its fields are invalid.
    """
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ChannelProtocolError(f"Message is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise ChannelProtocolError(f"Expected a JSON object, got {type(payload).__name__}")
    if payload.get("type") != "event":
        raise ChannelProtocolError(f"Unsupported message type: {payload.get('type')!r}")
    name = payload.get("name")
    if not isinstance(name, str) or not name:
        raise ChannelProtocolError("Control event has no name")

    try:
        if name in KNOWN_EVENT_NAMES:
            return _known_event_adapter.validate_python(payload)
        return GenericControlEvent.model_validate(payload)
    except ValidationError as e:
        raise ChannelProtocolError(f"Invalid {name} event: {e.error_count()} error(s)") from e


class EventChannel:
    """A browser tab connected to a session.

    The channel holds only a weak reference to its session: it reports
    events and its own removal, but never keeps the session alive.
    A channel is single use; once closed it is detached exactly once and
    drops any further frames.
    """

    _ids = itertools.count(1)

    def __init__(self, session: WindowSession, websocket: WebSocket) -> None:
        self._session_ref = weakref.ref(session)
        self._websocket = websocket
        self._id = next(self._ids)
        self._frame_size = session.frame_size
        self._outbox: asyncio.Queue[bytes] = asyncio.Queue(maxsize=MAX_PENDING_FRAMES)
        self._writer: asyncio.Task[None] | None = None
        self._is_open = False
        self._send_failed = False
        self._detached = False

    def __repr__(self) -> str:
        state = "open" if self._is_open else "closed"
        return f"<EventChannel #{self._id} {state}>"

    @property
    def id(self) -> int:
        return self._id

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def session(self) -> WindowSession | None:
        """The owning session, or None once it has been garbage collected."""
        return self._session_ref()

    @property
    def pending_frames(self) -> int:
        return self._outbox.qsize()

    async def run(self) -> None:
        """Serve the channel until the tab disconnects.

        The WebSocket must already be accepted.
        """
        session = self.session
        if session is None:
            return
        self._is_open = True
        self._writer = asyncio.create_task(
            self._drain_outbox(), name=f"tabwindow-channel-{self._id}-writer"
        )
        session._attach_channel(self)
        try:
            await self._receive_loop()
        except Exception as e:
            error = ChannelTransportError(f"Channel #{self._id} receive failed: {e}")
            error.__cause__ = e
            self._report_error(error)
        finally:
            self._is_open = False
            self._writer.cancel()
            with suppress(asyncio.CancelledError):
                await self._writer
            self._detach()

    def send_frame(self, data: bytes) -> bool:
        """Queue one RGBA frame for delivery without waiting for it.

        Frames whose length does not match the session dimensions are
        dropped, as is everything queued after the channel closed. When
        the tab is behind by ``MAX_PENDING_FRAMES`` the oldest pending
        frame is replaced.

        Returns:
            True if the frame was queued.
        """
        if not self._is_open or self._send_failed:
            return False
        if len(data) != self._frame_size:
            logger.debug(
                "Channel #%d dropped a %d byte frame (expected %d)",
                self._id, len(data), self._frame_size,
            )
            return False
        if self._outbox.full():
            self._outbox.get_nowait()
            logger.debug("Channel #%d is behind, dropped its oldest pending frame", self._id)
        self._outbox.put_nowait(data)
        return True

    async def close(self, code: int = 1000) -> None:
        """Ask the tab to disconnect; the receive loop then detaches us."""
        if not self._is_open:
            return
        try:
            await self._websocket.close(code)
        except Exception as e:
            logger.debug("Channel #%d close failed: %s", self._id, e)

    async def _receive_loop(self) -> None:
        while True:
            message = await self._websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.debug("Channel #%d disconnected (code=%s)", self._id, message.get("code"))
                return
            text = message.get("text")
            if text is None:
                logger.debug("Channel #%d ignored a binary message", self._id)
                continue
            self._handle_text(text)

    def _handle_text(self, text: str) -> None:
        try:
            event = decode_control_event(text)
        except ChannelProtocolError as e:
            logger.debug("Channel #%d discarded message: %s", self._id, e)
            return
        session = self.session
        if session is not None:
            session._handle_control_event(self, event)

    async def _drain_outbox(self) -> None:
        while True:
            frame = await self._outbox.get()
            try:
                await self._websocket.send_bytes(frame)
            except Exception as e:
                self._send_failed = True
                error = ChannelTransportError(f"Channel #{self._id} send failed: {e}")
                error.__cause__ = e
                self._report_error(error)
                return

    def _report_error(self, error: ChannelTransportError) -> None:
        logger.warning("%s", error)
        session = self.session
        if session is not None:
            session._report_channel_error(self, error)

    def _detach(self) -> None:
        if self._detached:
            return
        self._detached = True
        session = self.session
        if session is not None:
            session._detach_channel(self)
