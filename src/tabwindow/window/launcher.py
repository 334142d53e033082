"""Launch coordination: point a browser at a freshly bound session.

A launcher is any ``async (url) -> bool | None`` callable. Raising or
returning ``False`` counts as failure; anything else as success.
"""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from typing import Awaitable, Callable

from tabwindow.errors import LaunchError

logger = logging.getLogger(__name__)

Launcher = Callable[[str], Awaitable[bool | None]]

WILDCARD_HOSTS = ("::", "0.0.0.0", "")


def url_host(host: str) -> str:
    """Host part to put in a URL for a bound address.

    Wildcard listen addresses are not reachable as such, so ``localhost``
    is used instead; other IPv6 literals get brackets.
    """
    if host in WILDCARD_HOSTS:
        return "localhost"
    if ":" in host:
        return f"[{host}]"
    return host


def build_launch_url(host: str, port: int, scheme: str = "http") -> str:
    """URL of the session root, e.g. ``http://127.0.0.1:8123/``."""
    return f"{scheme}://{url_host(host)}:{port}/"


async def open_browser(url: str) -> bool:
    """Open ``url`` in the default browser.

    ``webbrowser.open`` may block while it spawns the browser, so it runs
    in the default executor.

    Raises:
        LaunchError: If no browser could be started.
    """
    loop = asyncio.get_running_loop()
    try:
        opened = await loop.run_in_executor(None, webbrowser.open, url)
    except webbrowser.Error as e:
        raise LaunchError(f"Failed to open browser at {url}: {e}", url=url) from e
    if not opened:
        raise LaunchError(f"No usable browser found to open {url}", url=url)
    logger.info("Opened browser at %s", url)
    return True


async def log_url(url: str) -> bool:
    """Headless launcher: only tell the user where to point a browser."""
    logger.info("Window available at %s", url)
    return True


async def launch(launcher: Launcher, url: str) -> None:
    """Run ``launcher`` and normalize its outcome.

    Raises:
        LaunchError: If the launcher raised or returned False.
    """
    try:
        result = await launcher(url)
    except LaunchError:
        raise
    except Exception as e:
        raise LaunchError(f"Launcher failed for {url}: {e}", url=url) from e
    if result is False:
        raise LaunchError(f"Launcher reported failure for {url}", url=url)
