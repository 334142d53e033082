"""tabwindow -- Use a browser tab as the display of a headless process.

A ``WindowSession`` binds a local HTTP/WebSocket listener, launches a
browser pointed at it and then streams raw RGBA frames to every connected
tab while forwarding pointer and keyboard input back to the caller.
"""

from tabwindow.window.session import WindowSession, open_window

__version__ = "0.1.0"

__all__ = ["WindowSession", "open_window"]
