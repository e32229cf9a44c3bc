from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager
from typing import Any

from catalog_sync.exceptions.base import CatalogValidationError
from catalog_sync.ingestion import config
from catalog_sync.ingestion.batching import Deadline, run_batched
from catalog_sync.ingestion.fetcher import CatalogFetcher, open_fetcher
from catalog_sync.ingestion.logger import logger
from catalog_sync.ingestion.normalization import (
    extract_items,
    normalize,
    podcast_id,
    published_sort_key,
    to_podcast_summary,
)
from catalog_sync.schemas.catalog import PodcastSummary


@asynccontextmanager
async def podcast_fetcher(api_key: str | None = None) -> AsyncIterator[CatalogFetcher]:
    """Fetcher authenticated against the podcast catalog with its static key header."""
    key = api_key if api_key is not None else config.LISTEN_API_KEY
    async with open_fetcher(headers={config.LISTEN_API_KEY_HEADER: key}) as fetcher:
        yield fetcher


async def search_podcasts_async(
    fetcher: CatalogFetcher,
    query: str,
    page: int = 1,
    deadline: Deadline | None = None,
) -> list[Mapping[str, Any]]:
    """Search the podcast catalog and return the raw podcast items of one page."""
    if not query or not query.strip():
        raise CatalogValidationError("query parameter `q` is required")
    payload = await fetcher.fetch_json(
        config.PODCAST_SEARCH_URL,
        params={"q": query.strip(), "type": "podcast", "sort_by_date": 0, "page": page},
        deadline=deadline,
    )
    return extract_items(payload, config.PODCAST_CONTAINER_KEYS, unwrap_key="podcast")


async def fetch_best_podcasts_async(
    fetcher: CatalogFetcher,
    page: int = 1,
    genre_id: str = config.BEST_PODCASTS_GENRE_ID,
    region: str = config.BEST_PODCASTS_REGION,
    deadline: Deadline | None = None,
) -> list[Mapping[str, Any]]:
    payload = await fetcher.fetch_json(
        config.BEST_PODCASTS_URL,
        params={
            "genre_id": genre_id,
            "page": page,
            "region": region,
            "sort": "listen_score",
            "safe_mode": 0,
        },
        deadline=deadline,
    )
    return extract_items(payload, config.PODCAST_CONTAINER_KEYS)


async def fetch_podcast_async(
    fetcher: CatalogFetcher,
    podcast_id: str,
    deadline: Deadline | None = None,
) -> Mapping[str, Any]:
    """Fetch one podcast with its episodes, newest first as the catalog serves them."""
    payload = await fetcher.fetch_json(
        config.PODCAST_URL_TEMPLATE.format(id=podcast_id),
        params={"sort": "recent_first"},
        deadline=deadline,
    )
    items = extract_items(payload, ())
    return items[0] if items else {}


async def hydrate_podcasts_async(
    fetcher: CatalogFetcher,
    raw_podcasts: Sequence[Mapping[str, Any]],
    *,
    sort_oldest_first: bool = False,
    batch_size: int = config.BATCH_SIZE,
    inter_batch_delay_ms: int = config.INTER_BATCH_DELAY_MS,
    deadline: Deadline | None = None,
) -> list[PodcastSummary]:
    """
    Attach normalized episodes to every podcast, a few podcasts at a time.

    A podcast whose episode fetch fails keeps its base metadata with an empty
    episode list. Output order matches `raw_podcasts`.
    """

    async def hydrate_one(raw: Mapping[str, Any]) -> PodcastSummary:
        pid = podcast_id(raw)
        if pid is None:
            return to_podcast_summary(raw)
        remote = await fetch_podcast_async(fetcher, pid, deadline=deadline)
        raw_episodes = extract_items(remote.get("episodes"), ())
        if sort_oldest_first:
            raw_episodes = sorted(raw_episodes, key=published_sort_key)
        return to_podcast_summary(raw, [normalize(e) for e in raw_episodes])

    def degraded(raw: Mapping[str, Any], error: Exception) -> PodcastSummary:
        logger.warning(f"Episodes unavailable for podcast {podcast_id(raw)}: {error}")
        return to_podcast_summary(raw)

    summaries = await run_batched(
        raw_podcasts,
        batch_size=batch_size,
        inter_batch_delay_ms=inter_batch_delay_ms,
        worker=hydrate_one,
        placeholder=degraded,
        sleep=fetcher.sleep,
        deadline=deadline,
    )
    logger.info(f"Hydrated {len(summaries)} podcasts")
    return summaries
