import asyncio
import json
import random
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from contextlib import asynccontextmanager
from typing import Any

import aiohttp

from catalog_sync.core.enums import FailureKind
from catalog_sync.exceptions.upstream import (
    FatalUpstreamError,
    MalformedResponseError,
    TransientUpstreamError,
    UpstreamUnavailableError,
)
from catalog_sync.ingestion import config
from catalog_sync.ingestion.batching import Deadline
from catalog_sync.ingestion.logger import logger

SleepFn = Callable[[float], Awaitable[Any]]
JitterFn = Callable[[int, int], int]


def classify_status(status: int) -> FailureKind | None:
    """Return None for a 2xx status, otherwise whether retrying could help."""
    if 200 <= status < 300:
        return None
    if status == 429 or 500 <= status < 600:
        return FailureKind.TRANSIENT
    return FailureKind.FATAL


class CatalogFetcher:
    """
    Single-lookup client for a rate-limited catalog API.

    The aiohttp session is injected so callers own its lifetime and tests can
    pass a fake. `sleep` and `jitter` are injectable for the same reason.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        headers: Mapping[str, str] | None = None,
        timeout_seconds: float = config.FETCH_TIMEOUT_SECONDS,
        max_attempts: int = config.FETCH_MAX_ATTEMPTS,
        base_delay_ms: int = config.FETCH_BASE_DELAY_MS,
        jitter_ms: int = config.FETCH_JITTER_MS,
        sleep: SleepFn = asyncio.sleep,
        jitter: JitterFn = random.randint,
    ):
        self.session = session
        self.headers = dict(headers or {})
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max(1, max_attempts)
        self.base_delay_ms = base_delay_ms
        self.jitter_ms = jitter_ms
        self.sleep = sleep
        self.jitter = jitter

    def backoff_delay_ms(self, attempt: int, base_delay_ms: int | None = None) -> int:
        """Delay before retry number `attempt` (1-based), jitter excluded."""
        base = self.base_delay_ms if base_delay_ms is None else base_delay_ms
        return base * 2 ** (attempt - 1)

    async def _get_once(self, url: str, params: Mapping[str, Any] | None) -> Any:
        try:
            async with self.session.get(
                url,
                params=params,
                headers=self.headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
            ) as response:
                status = response.status
                body = await response.read()
        except asyncio.TimeoutError as e:
            raise TransientUpstreamError(url, reason="timeout") from e
        except aiohttp.ClientError as e:
            raise FatalUpstreamError(url, f"Request to {url} failed: {e}") from e

        kind = classify_status(status)
        if kind is FailureKind.TRANSIENT:
            raise TransientUpstreamError(url, status=status)
        if kind is FailureKind.FATAL:
            raise FatalUpstreamError(url, f"Upstream returned {status} for {url}", status=status)

        try:
            return json.loads(body)
        except ValueError as e:
            # Covers UnicodeDecodeError from undecodable bytes
            raise MalformedResponseError(url, str(e)) from e

    async def fetch_json(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        max_attempts: int | None = None,
        base_delay_ms: int | None = None,
        deadline: Deadline | None = None,
    ) -> Any:
        """
        GET `url` and return the decoded JSON body.

        Transient failures (timeout, 429, 5xx) are retried with exponential
        backoff plus jitter, up to `max_attempts` tries in total.

        Raises:
            FatalUpstreamError: Non-retryable status or client error.
            MalformedResponseError: 2xx body that is not JSON.
            UpstreamUnavailableError: Transient failures on every attempt.
            ReconcileTimeoutError: The deadline expired before a request or backoff.
        """
        attempts = max(1, max_attempts if max_attempts is not None else self.max_attempts)
        base = self.base_delay_ms if base_delay_ms is None else base_delay_ms

        attempt = 0
        while True:
            attempt += 1
            if deadline is not None:
                deadline.check(f"fetch {url}")
            try:
                return await self._get_once(url, params)
            except TransientUpstreamError as e:
                if attempt >= attempts:
                    logger.error(f"Giving up on {url} after {attempt} attempts: {e.detail}")
                    raise UpstreamUnavailableError(url, attempt, e) from e
                delay_ms = self.backoff_delay_ms(attempt, base) + self.jitter(0, self.jitter_ms)
                logger.warning(
                    f"{e.detail}. Retrying in {delay_ms}ms (attempt {attempt}/{attempts})"
                )
                if deadline is not None:
                    deadline.check(f"backoff for {url}")
                await self.sleep(delay_ms / 1000)


@asynccontextmanager
async def open_fetcher(
    *,
    headers: Mapping[str, str] | None = None,
    **fetcher_kwargs: Any,
) -> AsyncIterator[CatalogFetcher]:
    """Own an aiohttp session for the duration of one ingestion run."""
    async with aiohttp.ClientSession() as session:
        yield CatalogFetcher(session, headers=headers, **fetcher_kwargs)
