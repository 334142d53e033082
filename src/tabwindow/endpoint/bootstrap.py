"""Bootstrap page served to the browser tab.

The page is a single self-contained document: a canvas sized to the
session, plus a script that connects back over a WebSocket, forwards
pointer and keyboard input as JSON and paints every binary message it
receives as one RGBA frame.
"""

from __future__ import annotations

import json
import logging
from string import Template

logger = logging.getLogger(__name__)

_HTML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
}

# ${...} placeholders only; JS template braces are left alone by string.Template.
_PAGE_TEMPLATE = Template("""\
<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>${title}</title>
<style>
html, body { background-color: #000; color: #999; margin: 0; padding: 0; width: 100%; height: 100%; }
canvas { width: 100%; height: 100%; object-fit: contain; outline: none; }
</style>
</head>
<body>
<canvas width="${width}" height="${height}" tabindex="0"></canvas>
<script>
const WIDTH = ${width};
const HEIGHT = ${height};
const canvas = document.querySelector("canvas");
const context = canvas.getContext("2d");
const ws = new WebSocket(${socket_url});
ws.binaryType = "arraybuffer";
canvas.focus();

function sendEvent(e) {
  if (ws.readyState === WebSocket.OPEN) {
    ws.send(JSON.stringify(e));
  }
}

function pointerEvent(e, extra) {
  return Object.assign({
    type: "event", pointerId: e.pointerId, pointerType: e.pointerType, isPrimary: e.isPrimary,
    x: e.clientX, y: e.clientY, width: e.width, height: e.height, pressure: e.pressure
  }, extra);
}

function keyEvent(e, extra) {
  // code is the physical key position (QWERTY) whatever the user's layout
  return Object.assign({
    type: "event", key: e.key, code: e.code, altKey: e.altKey, ctrlKey: e.ctrlKey,
    metaKey: e.metaKey, shiftKey: e.shiftKey, repeat: e.repeat
  }, extra);
}

ws.onopen = function() {
  canvas.onpointermove = function(e) { sendEvent(pointerEvent(e, {name: "pointermove"})); };
  canvas.onpointerdown = function(e) {
    canvas.focus();
    sendEvent(pointerEvent(e, {name: "pointerdown", button: e.button, buttons: e.buttons}));
  };
  canvas.onpointerup = function(e) {
    sendEvent(pointerEvent(e, {name: "pointerup", button: e.button, buttons: e.buttons}));
  };
  canvas.onkeydown = function(e) { sendEvent(keyEvent(e, {name: "keydown"})); };
  canvas.onkeyup = function(e) { sendEvent(keyEvent(e, {name: "keyup"})); };
  window.onbeforeunload = function() { sendEvent({type: "event", name: "exit"}); };
};

ws.onmessage = function(e) {
  if (!(e.data instanceof ArrayBuffer) || e.data.byteLength !== WIDTH * HEIGHT * 4) {
    return;
  }
  context.putImageData(new ImageData(new Uint8ClampedArray(e.data), WIDTH, HEIGHT), 0, 0);
};

ws.onclose = function() {
  document.body.innerHTML = "<center><h1>Connection lost. Close this window.</h1></center>";
  try { window.close(); } catch (err) {}
  window.location.href = "about:blank";
};
</script>
</body>
</html>
""")


def escape_html(value: object) -> str:
    """Escape ``&``, ``<``, ``>`` and ``"`` for text and attribute context."""
    text = str(value)
    for char, entity in _HTML_ESCAPES.items():
        text = text.replace(char, entity)
    return text


def render_bootstrap_page(title: str, width: int, height: int, socket_url: str) -> str:
    """Render the bootstrap document for a session.

    Every interpolated value passes through an escaping or coercion step:
    the title is HTML-escaped, dimensions are forced to ``int`` and the
    socket URL is emitted as a JSON string literal.

    Args:
        title: Tab title, user controlled.
        width: Frame width in pixels.
        height: Frame height in pixels.
        socket_url: ``ws://host:port/`` the page connects back to.
    """
    return _PAGE_TEMPLATE.substitute(
        title=escape_html(title),
        width=int(width),
        height=int(height),
        socket_url=_script_literal(socket_url),
    )


def _script_literal(value: str) -> str:
    # json.dumps leaves "</script>" intact; break it up so it cannot end the block.
    return json.dumps(value).replace("</", "<\\/")
