from __future__ import annotations

import time
from logging import getLogger
from typing import TYPE_CHECKING, TypedDict, Unpack

import httpx
from aiolimiter import AsyncLimiter
from httpx_retries import Retry, RetryTransport

from artimport.config.http_resilience import RateLimit, ResilienceConfig, RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

__all__ = [
    "RateLimit",
    "RequestOptions",
    "ResilienceConfig",
    "ResilientClient",
    "RetryPolicy",
    "build_retry",
]

log = getLogger(__name__)


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
        backoff_jitter=policy.backoff_jitter,
    )


class RequestOptions(TypedDict, total=False):
    params: Mapping[str, str | int | float]
    json: object
    headers: Mapping[str, str]
    timeout: float


class ResilientClient:
    """``httpx.AsyncClient`` with transport retries for reads and a shared rate limit.

    Every request, including the ones issued by the batch processor's own retry
    loop, passes through the same limiter.
    """

    def __init__(self, config: ResilienceConfig) -> None:
        self.config = config
        self.requests_sent = 0
        self._limiter: AsyncLimiter | None = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )
        self._client = httpx.AsyncClient(
            base_url=config.base_url or "",
            timeout=config.timeout_seconds,
            headers=dict(config.default_headers or {}),
            transport=RetryTransport(retry=build_retry(config.retry)),
        )

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        log.debug("%s: closing after %s request(s)", self.config.name, self.requests_sent)
        await self._client.aclose()

    async def request(
        self, method: str, url: str, **kwargs: Unpack[RequestOptions]
    ) -> httpx.Response:
        if self._limiter is None:
            return await self._send(method, url, kwargs)
        async with self._limiter:
            return await self._send(method, url, kwargs)

    async def _send(self, method: str, url: str, options: RequestOptions) -> httpx.Response:
        started = time.perf_counter()
        self.requests_sent += 1
        response = await self._client.request(
            method,
            url,
            params=options.get("params"),
            json=options.get("json"),
            headers=options.get("headers"),
            timeout=options.get("timeout", self.config.timeout_seconds),
        )
        log.debug(
            "%s %s -> %s (%.0f ms)",
            method,
            url,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )
        return response
