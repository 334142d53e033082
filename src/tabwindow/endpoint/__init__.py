"""HTTP/WebSocket endpoint of a window session.

Serves the bootstrap page that turns a browser tab into a display and
runs one event channel per connected tab.
"""
