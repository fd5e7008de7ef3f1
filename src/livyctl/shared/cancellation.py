"""Cooperative cancellation tokens threaded through every suspension point."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable
from typing import TypeVar

from livyctl.shared.exceptions import OperationAborted

T = TypeVar("T")


class CancelToken:
    """A one-shot cancellation signal.

    A token built with parents fires as soon as any parent fires, so one
    token per operation can combine the caller's signal with internal ones.
    """

    def __init__(self, *parents: CancelToken | None) -> None:
        self._event = asyncio.Event()
        self._children: list[CancelToken] = []
        self._parents: list[CancelToken] = []
        for parent in parents:
            if parent is None:
                continue
            parent._children.append(self)
            self._parents.append(parent)
            if parent.cancelled:
                self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        if self._event.is_set():
            return
        self._event.set()
        for child in list(self._children):
            child.cancel()

    def detach(self) -> None:
        """Unregister from every parent; the token stops following them."""
        for parent in self._parents:
            with contextlib.suppress(ValueError):
                parent._children.remove(self)
        self._parents.clear()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise OperationAborted("operation cancelled")

    async def wait(self) -> None:
        await self._event.wait()

    async def sleep(self, seconds: float) -> None:
        """Sleep for ``seconds`` unless the token fires first.

        Raises:
            OperationAborted: If the token fires before or during the delay.
        """
        self.raise_if_cancelled()
        if seconds > 0:
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._event.wait(), timeout=seconds)
        else:
            await asyncio.sleep(0)
        self.raise_if_cancelled()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` but give up as soon as the token fires.

        The abandoned work is cancelled before ``OperationAborted`` is raised.
        """
        task = asyncio.ensure_future(awaitable)
        if self.cancelled:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise OperationAborted("operation cancelled")

        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task.done():
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise OperationAborted("operation cancelled")


def link(*tokens: CancelToken | None) -> CancelToken:
    """Return a fresh token that fires when any of ``tokens`` fires.

    Call ``detach()`` on it once the operation ends, or long-lived parents
    keep it alive.
    """
    return CancelToken(*tokens)
