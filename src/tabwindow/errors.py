"""Exceptions raised by tabwindow."""

from __future__ import annotations


class WindowError(Exception):
    """Base class for all tabwindow errors."""


class BindError(WindowError):
    """Raised when the session listener cannot bind its host and port."""

    def __init__(self, message: str, host: str = "", port: int = 0) -> None:
        super().__init__(message)
        self.host = host
        self.port = port


class LaunchError(WindowError):
    """Raised when the browser could not be pointed at the session URL."""

    def __init__(self, message: str, url: str = "") -> None:
        super().__init__(message)
        self.url = url


class SessionStateError(WindowError):
    """Raised on an illegal state transition or use of a finished session."""


class ChannelProtocolError(WindowError):
    """A message from a tab did not match the control event schema.

    Never raised to callers: the channel logs and discards the message.
    """


class ChannelTransportError(WindowError):
    """A socket-level failure on one channel, reported via ``channelError``."""
