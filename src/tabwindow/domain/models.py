"""Core domain models for tabwindow.

These models represent the control events a browser tab sends back to the
session: pointer input, keyboard input and the exit notice emitted when
the tab unloads. Field names follow the DOM event properties the bootstrap
page copies into each message, so a decoded event compares equal to the
JSON the browser produced.
"""

from __future__ import annotations

import enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class SessionState(str, enum.Enum):
    """Lifecycle state of a window session."""

    INITIALIZING = "initializing"
    READY = "ready"
    ERROR = "error"
    CLOSING = "closing"
    CLOSED = "closed"


class SessionEvent(str, enum.Enum):
    """Lifecycle notifications emitted by a session to its listeners.

    Control events are emitted under their wire ``name`` instead
    (``pointermove``, ``keydown``...).
    """

    CHANNEL_OPEN = "channelOpen"
    CHANNEL_CLOSE = "channelClose"
    CHANNEL_ERROR = "channelError"
    EXIT = "exit"


POINTER_EVENT_NAMES = ("pointermove", "pointerdown", "pointerup")
KEY_EVENT_NAMES = ("keydown", "keyup")
EXIT_EVENT_NAME = "exit"


# ---------------------------------------------------------------------------
# Control events (browser -> session)
# ---------------------------------------------------------------------------


class ControlEvent(BaseModel):
    """Common envelope of every message a tab sends."""

    type: Literal["event"] = "event"
    name: str = Field(description="DOM event name, e.g. 'pointerdown'")


class PointerEvent(ControlEvent):
    """A pointer move, press or release in canvas client coordinates.

    ``button`` and ``buttons`` are only sent with pointerdown/pointerup.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    name: Literal["pointermove", "pointerdown", "pointerup"]
    pointerId: int
    pointerType: str = Field(description="'mouse', 'pen' or 'touch'")
    isPrimary: bool
    x: float
    y: float
    width: float = Field(description="Contact geometry width")
    height: float = Field(description="Contact geometry height")
    pressure: float = Field(ge=0.0, le=1.0)
    button: int | None = None
    buttons: int | None = Field(default=None, ge=0, description="Pressed buttons bitmask")

    @model_validator(mode="after")
    def _require_buttons(self) -> PointerEvent:
        if self.name != "pointermove" and (self.button is None or self.buttons is None):
            raise ValueError(f"{self.name} requires button and buttons")
        return self


class KeyEvent(ControlEvent):
    """A key press or release.

    ``code`` identifies the physical key (QWERTY position) regardless of
    the user's layout; ``key`` is the layout-dependent value.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    name: Literal["keydown", "keyup"]
    key: str
    code: str
    altKey: bool
    ctrlKey: bool
    metaKey: bool
    shiftKey: bool
    repeat: bool


class ExitEvent(ControlEvent):
    """Sent by the tab from ``beforeunload``; asks the session to close."""

    model_config = ConfigDict(frozen=True)

    name: Literal["exit"] = "exit"


class GenericControlEvent(ControlEvent):
    """A control event with a name this package does not know.

    Extra fields are kept as-is so newer pages keep working.
    """

    model_config = ConfigDict(extra="allow")
