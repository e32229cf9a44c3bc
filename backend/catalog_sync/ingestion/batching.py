import asyncio
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from catalog_sync.exceptions.base import CatalogValidationError
from catalog_sync.exceptions.upstream import ReconcileTimeoutError
from catalog_sync.ingestion.logger import logger
from catalog_sync.utils import chunked

K = TypeVar("K")
R = TypeVar("R")

SleepFn = Callable[[float], Awaitable[Any]]


@dataclass
class Deadline:
    """Caller-level time budget shared by every suspension point of one run."""

    seconds: float
    clock: Callable[[], float] = time.monotonic
    started_at: float = field(init=False)

    def __post_init__(self) -> None:
        self.started_at = self.clock()

    def remaining(self) -> float:
        return self.seconds - (self.clock() - self.started_at)

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0

    def check(self, stage: str) -> None:
        if self.expired:
            raise ReconcileTimeoutError(stage, self.seconds)


async def run_batched(
    keys: Iterable[K],
    *,
    batch_size: int,
    inter_batch_delay_ms: int,
    worker: Callable[[K], Awaitable[R]],
    placeholder: Callable[[K, Exception], R],
    sleep: SleepFn = asyncio.sleep,
    deadline: Deadline | None = None,
) -> list[R]:
    """
    Run `worker` over `keys` in consecutive groups of `batch_size`.

    Workers inside a group run concurrently and the whole group settles before
    the next one starts; groups are separated by a pacing delay. A worker that
    raises gets `placeholder(key, error)` in its slot instead of failing the
    run. Results come back in input order.

    Raises:
        CatalogValidationError: If batch_size is smaller than one.
        ReconcileTimeoutError: If the deadline expires before a group, before a
            pacing delay, or inside any worker.
    """
    if batch_size < 1:
        raise CatalogValidationError(f"batch_size must be at least 1, got {batch_size}")

    key_list = list(keys)
    results: list[Any] = [None] * len(key_list)
    groups = chunked(range(len(key_list)), batch_size)

    for group_number, indexes in enumerate(groups, start=1):
        if deadline is not None:
            deadline.check(f"batch {group_number}/{len(groups)}")

        outcomes = await asyncio.gather(
            *(worker(key_list[index]) for index in indexes),
            return_exceptions=True,
        )

        timeout_error: ReconcileTimeoutError | None = None
        for index, outcome in zip(indexes, outcomes, strict=True):
            if isinstance(outcome, ReconcileTimeoutError):
                timeout_error = timeout_error or outcome
            elif isinstance(outcome, Exception):
                logger.warning(
                    f"Worker failed for key {key_list[index]!r}, using placeholder. Error: {outcome}"
                )
                results[index] = placeholder(key_list[index], outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results[index] = outcome
        if timeout_error is not None:
            raise timeout_error

        logger.debug(f"Batch {group_number}/{len(groups)} settled ({len(indexes)} keys)")

        if group_number < len(groups) and inter_batch_delay_ms > 0:
            if deadline is not None:
                deadline.check(f"pacing after batch {group_number}")
            await sleep(inter_batch_delay_ms / 1000)

    return results
