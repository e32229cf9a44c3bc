from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

from catalog_sync.ingestion import config
from catalog_sync.ingestion.batching import Deadline, run_batched
from catalog_sync.ingestion.fetcher import CatalogFetcher, open_fetcher
from catalog_sync.ingestion.logger import logger
from catalog_sync.ingestion.normalization import normalize_many
from catalog_sync.schemas.catalog import CanonicalRecord, TrackQueryResult


@asynccontextmanager
async def track_fetcher() -> AsyncIterator[CatalogFetcher]:
    async with open_fetcher() as fetcher:
        yield fetcher


async def search_tracks_async(
    fetcher: CatalogFetcher,
    query: str,
    deadline: Deadline | None = None,
) -> list[CanonicalRecord]:
    payload = await fetcher.fetch_json(
        config.TRACK_SEARCH_URL,
        params={"query": query},
        deadline=deadline,
    )
    return normalize_many(payload, config.TRACK_CONTAINER_KEYS)


async def search_many_tracks_async(
    fetcher: CatalogFetcher,
    queries: Sequence[str],
    *,
    batch_size: int = config.BATCH_SIZE,
    inter_batch_delay_ms: int = config.INTER_BATCH_DELAY_MS,
    deadline: Deadline | None = None,
) -> list[TrackQueryResult]:
    """One result per query, in query order; failed queries come back with ok=False."""

    async def search_one(query: str) -> TrackQueryResult:
        query_str = str(query or "").strip()
        if not query_str:
            return TrackQueryResult(query=str(query or ""), ok=False, error="empty query")
        records = await search_tracks_async(fetcher, query_str, deadline=deadline)
        return TrackQueryResult(query=query_str, ok=True, records=records)

    def degraded(query: str, error: Exception) -> TrackQueryResult:
        return TrackQueryResult(query=str(query).strip(), ok=False, error=str(error))

    results = await run_batched(
        queries,
        batch_size=batch_size,
        inter_batch_delay_ms=inter_batch_delay_ms,
        worker=search_one,
        placeholder=degraded,
        sleep=fetcher.sleep,
        deadline=deadline,
    )
    failed = sum(1 for r in results if not r.ok)
    logger.info(f"Searched {len(results)} track queries ({failed} failed)")
    return results
