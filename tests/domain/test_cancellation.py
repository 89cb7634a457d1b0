from __future__ import annotations

import asyncio

import pytest

from artimport.domain.cancellation import CancellationToken
from artimport.domain.errors import OperationCancelled


def test_guard_returns_result_when_not_cancelled() -> None:
    async def scenario() -> int:
        token = CancellationToken()

        async def lookup() -> int:
            return 7

        return await token.guard(lookup())

    assert asyncio.run(scenario()) == 7


def test_guard_abandons_pending_read_on_cancel() -> None:
    async def scenario() -> None:
        token = CancellationToken()
        started = asyncio.Event()

        async def slow_lookup() -> int:
            started.set()
            await asyncio.sleep(10)
            return 1

        async def cancel_soon() -> None:
            await started.wait()
            token.cancel("stop")

        canceller = asyncio.create_task(cancel_soon())
        with pytest.raises(OperationCancelled, match="stop"):
            await token.guard(slow_lookup())
        await canceller

    asyncio.run(scenario())


def test_cancel_is_one_way() -> None:
    token = CancellationToken()
    token.cancel("first")
    token.cancel("second")

    assert token.cancelled
    assert token.reason == "first"
    with pytest.raises(OperationCancelled):
        token.raise_if_cancelled()
