"""Minimal named-event emitter used by window sessions."""

from __future__ import annotations

import asyncio
import enum
import inspect
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


def _key(name: str | enum.Enum) -> str:
    # str-mixin enum members hash like their value but str() differently
    return name.value if isinstance(name, enum.Enum) else name


class EventEmitter:
    """Registry of listeners keyed by event name.

    Listeners run synchronously in registration order. A listener that
    raises is logged and skipped so protocol code never sees caller bugs.
    Coroutine listeners are scheduled as tasks on the running loop.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}
        self._tasks: set[asyncio.Task[Any]] = set()

    def on(self, name: str, listener: Listener) -> Listener:
        """Register ``listener`` for ``name``; returns it for decorator use."""
        self._listeners.setdefault(_key(name), []).append(listener)
        return listener

    def once(self, name: str, listener: Listener) -> Listener:
        """Register a listener that is removed after its first call."""

        def wrapper(*args: Any, **kwargs: Any) -> Any:
            self.off(name, wrapper)
            return listener(*args, **kwargs)

        wrapper.__wrapped__ = listener  # type: ignore[attr-defined]
        return self.on(name, wrapper)

    def off(self, name: str, listener: Listener | None = None) -> None:
        """Remove one listener, or every listener of ``name`` if None."""
        name = _key(name)
        if name not in self._listeners:
            return
        if listener is None:
            self._listeners.pop(name, None)
            return
        listeners = self._listeners[name]
        for i, registered in enumerate(listeners):
            if registered == listener or getattr(registered, "__wrapped__", None) == listener:
                del listeners[i]
                break
        if not listeners:
            self._listeners.pop(name, None)

    def listener_count(self, name: str) -> int:
        return len(self._listeners.get(_key(name), ()))

    def emit(self, name: str, *args: Any) -> int:
        """Call every listener of ``name`` with ``args``.

        Returns:
            The number of listeners called.
        """
        listeners = list(self._listeners.get(_key(name), ()))
        for listener in listeners:
            try:
                result = listener(*args)
            except Exception:
                logger.exception("Listener %r for %r raised", listener, _key(name))
                continue
            if inspect.isawaitable(result):
                self._track(name, result)
        return len(listeners)

    def _track(self, name: str, awaitable: Any) -> None:
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)

        def _done(t: asyncio.Task[Any]) -> None:
            self._tasks.discard(t)
            if not t.cancelled() and t.exception() is not None:
                logger.error(
                    "Async listener for %r raised", _key(name), exc_info=t.exception()
                )

        task.add_done_callback(_done)
