"""Externally settled asynchronous results."""

from __future__ import annotations

import asyncio
from collections.abc import Generator
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Deferred(Generic[T]):
    """An awaitable result that is resolved or rejected from outside.

    Only the first ``resolve``/``reject`` call has an effect; later calls
    are ignored. There is no built-in timeout.

    Usage:
        deferred: Deferred[str] = Deferred()
        loop.call_soon(deferred.resolve, "done")
        value = await deferred
    """

    def __init__(self) -> None:
        self.future: asyncio.Future[T] = asyncio.get_running_loop().create_future()

    @property
    def settled(self) -> bool:
        return self.future.done()

    def resolve(self, value: T) -> bool:
        """Complete with ``value``. Returns False if already settled."""
        if self.future.done():
            return False
        self.future.set_result(value)
        return True

    def reject(self, error: BaseException) -> bool:
        """Complete with ``error``. Returns False if already settled."""
        if self.future.done():
            return False
        self.future.set_exception(error)
        return True

    def __await__(self) -> Generator[Any, None, T]:
        return self.future.__await__()
