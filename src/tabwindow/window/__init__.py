"""Window sessions: lifecycle, launch coordination and event dispatch."""

from tabwindow.window.session import WindowSession, bind_socket, open_window

__all__ = ["WindowSession", "bind_socket", "open_window"]
