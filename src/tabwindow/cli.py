"""Command-line interface for tabwindow.

Provides a demo window that exercises the whole pipeline (bootstrap page,
pointer/keyboard events, frame streaming) and a helper that prints the
bootstrap page for inspection.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

import numpy as np

logger = logging.getLogger(__name__)

DEMO_FPS = 30
DOT_RADIUS = 6


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="tabwindow",
        description="Use a browser tab as the display of a headless process",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/tabwindow.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    demo_parser = subparsers.add_parser(
        "demo",
        help="Open an animated demo window",
        description=(
            "Open an animated demo window. The pointer dot is drawn at the "
            "pointer's client coordinates, so it only lines up with the "
            "pointer when the browser viewport matches the frame size."
        ),
    )
    demo_parser.add_argument("--title", type=str, default=None, help="Tab title")
    demo_parser.add_argument("--width", type=int, default=None, help="Frame width in pixels")
    demo_parser.add_argument("--height", type=int, default=None, help="Frame height in pixels")
    demo_parser.add_argument("--host", type=str, default=None, help="Listen address ('::' for all)")
    demo_parser.add_argument("--port", type=int, default=None, help="Listen port (0 = any)")
    demo_parser.add_argument(
        "--no-browser", action="store_true",
        help="Only log the URL instead of launching a browser",
    )

    page_parser = subparsers.add_parser("page", help="Print the bootstrap HTML page")
    page_parser.add_argument("--title", type=str, default="Window")
    page_parser.add_argument("--width", type=int, default=1280)
    page_parser.add_argument("--height", type=int, default=720)
    page_parser.add_argument("--url", type=str, default="ws://127.0.0.1:8080/")

    return parser.parse_args(argv)


def paint_demo_frame(
    pixels: np.ndarray, frame: int, pointer: tuple[int, int] | None = None
) -> None:
    """Fill ``pixels`` with a scrolling gradient and a dot under the pointer."""
    height, width = pixels.shape[:2]
    xs = np.arange(width, dtype=np.uint32)
    ys = np.arange(height, dtype=np.uint32)
    pixels[..., 0] = ((xs[np.newaxis, :] + frame * 4) % 256).astype(np.uint8)
    pixels[..., 1] = ((ys[:, np.newaxis] + frame * 2) % 256).astype(np.uint8)
    pixels[..., 2] = 128
    pixels[..., 3] = 255

    if pointer is not None:
        px, py = pointer
        y0, y1 = max(py - DOT_RADIUS, 0), min(py + DOT_RADIUS, height)
        x0, x1 = max(px - DOT_RADIUS, 0), min(px + DOT_RADIUS, width)
        if y0 < y1 and x0 < x1:
            pixels[y0:y1, x0:x1] = (255, 255, 255, 255)


async def _run_demo(settings, args) -> None:
    """Open a window and animate it until the tab closes."""
    from tabwindow.domain.models import SessionEvent, SessionState
    from tabwindow.window.session import open_window

    overrides = {
        "title": args.title,
        "width": args.width,
        "height": args.height,
        "host": args.host,
        "port": args.port,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if args.no_browser:
        overrides["launch_browser"] = False

    session = await open_window(settings.window, **overrides)
    print(f"Window {session.title!r} ({session.width}x{session.height}) at {session.url}")

    pointer: list[tuple[int, int] | None] = [None]

    def on_pointer(event) -> None:
        pointer[0] = (int(event.x), int(event.y))

    session.on("pointermove", on_pointer)
    session.on("pointerdown", on_pointer)
    session.on("keydown", lambda e: logger.info("keydown key=%r code=%r", e.key, e.code))
    session.on(SessionEvent.CHANNEL_OPEN, lambda ch: logger.info("Tab connected (%r)", ch))
    session.on(SessionEvent.CHANNEL_CLOSE, lambda ch: logger.info("Tab disconnected (%r)", ch))

    pixels = session.surface.pixels
    frame = 0
    try:
        while session.state is SessionState.READY:
            paint_demo_frame(pixels, frame, pointer[0])
            session.draw()
            frame += 1
            await asyncio.sleep(1 / DEMO_FPS)
    finally:
        if session.state is SessionState.READY:
            await session.close()
    await session.wait_closed()
    print(f"Window closed after {frame} frames")


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the tabwindow CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from tabwindow.config.settings import load_settings
    from tabwindow.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    if args.command == "demo":
        logger.info("Starting demo window")
        try:
            asyncio.run(_run_demo(settings, args))
        except KeyboardInterrupt:
            logger.info("Interrupted")

    elif args.command == "page":
        from tabwindow.endpoint.bootstrap import render_bootstrap_page

        print(render_bootstrap_page(args.title, args.width, args.height, args.url))


if __name__ == "__main__":
    main()
