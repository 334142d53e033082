"""Single-assignment result cell for asynchronous startup."""

from __future__ import annotations

import asyncio
from typing import Any, Generator, Generic, TypeVar

T = TypeVar("T")


class SettleOnce(Generic[T]):
    """An awaitable that is resolved or rejected at most once.

    Later ``resolve``/``reject`` calls are ignored and report False, so
    several terminal socket events racing each other cannot change an
    outcome that was already delivered.
    """

    def __init__(self) -> None:
        self._future: asyncio.Future[T] = asyncio.get_running_loop().create_future()

    @property
    def settled(self) -> bool:
        return self._future.done()

    def resolve(self, value: T) -> bool:
        if self._future.done():
            return False
        self._future.set_result(value)
        return True

    def reject(self, error: BaseException) -> bool:
        if self._future.done():
            return False
        self._future.set_exception(error)
        return True

    def __await__(self) -> Generator[Any, None, T]:
        return asyncio.shield(self._future).__await__()
