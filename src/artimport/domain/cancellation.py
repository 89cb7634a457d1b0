"""Cooperative cancellation passed explicitly through the processing call chain."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from artimport.domain.errors import OperationCancelled

if TYPE_CHECKING:
    from collections.abc import Awaitable

log = getLogger(__name__)


class CancellationToken:
    """A one-way flag: once cancelled it stays cancelled."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        if self._event.is_set():
            return
        self.reason = reason
        log.info("Cancellation requested: %s", reason)
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise OperationCancelled(self.reason or "cancelled")

    async def guard[T](self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless cancellation fires first.

        Only wrap calls that are safe to abandon (reads). Writes are awaited to
        completion so the store and the report agree.
        """

        self.raise_if_cancelled()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
        if task.done():
            return task.result()
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise OperationCancelled(self.reason or "cancelled")
