import asyncio
from collections.abc import Mapping
from datetime import date
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from catalog_sync.crud import episode as episodes_crud
from catalog_sync.crud import podcast as podcasts_crud
from catalog_sync.exceptions.base import CatalogValidationError
from catalog_sync.exceptions.store import PodcastNotFoundError, StoreError
from catalog_sync.exceptions.upstream import (
    FatalUpstreamError,
    ReconcileTimeoutError,
    TransientUpstreamError,
)
from catalog_sync.ingestion import config, podcast_catalog
from catalog_sync.ingestion.batching import Deadline
from catalog_sync.ingestion.logger import logger
from catalog_sync.ingestion.normalization import extract_items, normalize
from catalog_sync.inputs.catalog import PageParams, PodcastPayload, SearchParams, parse_input
from catalog_sync.models.episode import EpisodeCreate
from catalog_sync.models.podcast import Podcast, PodcastCreate
from catalog_sync.schemas.catalog import CanonicalRecord, PodcastSummary
from catalog_sync.schemas.results import PodcastWithEpisodes, SavedPodcastResult
from catalog_sync.services.reconcile import (
    prepend_id,
    require_owner_scope,
    sort_oldest_first,
)
from catalog_sync.utils import unique_strings


def to_episode_create(record: CanonicalRecord) -> EpisodeCreate | None:
    if not record.id:
        return None
    return EpisodeCreate(
        id=record.id,
        title=record.title,
        audio=record.media_url,
        audio_length=record.duration_seconds,
        published_at=date.fromisoformat(record.published_at) if record.published_at else None,
    )


async def _search_podcasts_async(query: str, page: int, limit: int) -> list[PodcastSummary]:
    deadline = Deadline(config.RECONCILE_DEADLINE_SECONDS)
    async with podcast_catalog.podcast_fetcher() as fetcher:
        raw_podcasts = await podcast_catalog.search_podcasts_async(
            fetcher, query, page, deadline=deadline
        )
        return await podcast_catalog.hydrate_podcasts_async(
            fetcher, raw_podcasts[:limit], deadline=deadline
        )


def search_podcasts(
    *,
    query: str,
    page: int = 1,
    limit: int = config.DEFAULT_PAGE_SIZE,
) -> list[PodcastSummary]:
    """
    Search the podcast catalog and attach each hit's episodes.

    Parameters:
        query (str): Free-text search string.
        page (int): 1-based result page.
        limit (int): Most podcasts to return, capped at MAX_PAGE_SIZE.
    Returns:
        list[PodcastSummary]: Podcasts in catalog order. A podcast whose
            episodes could not be fetched is returned without episodes.
    Raises:
        CatalogValidationError: If the query is empty or the page is invalid.
        FatalUpstreamError: If the search itself fails.
    """
    params = parse_input(SearchParams, {"q": query, "page": page, "limit": limit})
    return asyncio.run(_search_podcasts_async(params.q, params.page, params.limit))


async def _best_podcasts_async(page: int, genre_id: str, region: str) -> list[PodcastSummary]:
    deadline = Deadline(config.RECONCILE_DEADLINE_SECONDS)
    async with podcast_catalog.podcast_fetcher() as fetcher:
        raw_podcasts = await podcast_catalog.fetch_best_podcasts_async(
            fetcher, page, genre_id=genre_id, region=region, deadline=deadline
        )
        return await podcast_catalog.hydrate_podcasts_async(
            fetcher, raw_podcasts, sort_oldest_first=True, deadline=deadline
        )


def get_best_podcasts(
    *,
    page: int = 1,
    genre_id: str = config.BEST_PODCASTS_GENRE_ID,
    region: str = config.BEST_PODCASTS_REGION,
) -> list[PodcastSummary]:
    """Best podcasts of a genre, each with its episodes oldest first."""
    if page < 1:
        raise CatalogValidationError(f"page must be at least 1, got {page}")
    return asyncio.run(_best_podcasts_async(page, genre_id, region))


def save_podcast(
    *,
    session: Session,
    owner_scope: str,
    podcast: PodcastPayload | Mapping[str, Any],
) -> SavedPodcastResult:
    """
    Save a podcast for a user together with the episodes not stored yet.

    Parameters:
        session (Session): Database session.
        owner_scope (str): The user saving the podcast.
        podcast (PodcastPayload | Mapping): The podcast as shown to the user.
    Returns:
        SavedPodcastResult: The stored podcast and the newly inserted episodes.
    Raises:
        CatalogValidationError: If the podcast id or title is missing.
        StoreError: If the database write fails.
    """
    require_owner_scope(owner_scope)
    payload = parse_input(PodcastPayload, podcast)
    episode_creates = [
        create
        for create in (to_episode_create(normalize(raw)) for raw in payload.episodes)
        if create is not None
    ]
    podcast_create = PodcastCreate(
        id=payload.id,
        title=payload.title,
        publisher=payload.publisher,
        image=payload.image,
        user_id=owner_scope,
        episode_ids=unique_strings(e.id for e in episode_creates),
    )

    try:
        stored = podcasts_crud.upsert_podcast(session=session, podcast_create=podcast_create)
        inserted = episodes_crud.insert_episodes_if_absent(
            session=session,
            episodes=episode_creates,
        )
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise StoreError("save podcast", str(e)) from e

    logger.info(
        f"Saved podcast {stored.id} for {owner_scope} "
        f"({len(inserted)} of {len(episode_creates)} episodes new)"
    )
    return SavedPodcastResult(podcast=stored, inserted_episodes=inserted)


def get_saved_podcasts(
    *,
    session: Session,
    owner_scope: str,
    page: int = 1,
    limit: int = config.DEFAULT_PAGE_SIZE,
) -> list[Podcast]:
    require_owner_scope(owner_scope)
    paging = parse_input(PageParams, {"page": page, "limit": limit})
    return podcasts_crud.get_podcasts_by_owner(
        session=session, user_id=owner_scope, limit=paging.limit, offset=paging.offset
    )


async def _fetch_remote_podcast_async(podcast_id: str) -> Mapping[str, Any]:
    deadline = Deadline(config.RECONCILE_DEADLINE_SECONDS)
    async with podcast_catalog.podcast_fetcher() as fetcher:
        return await podcast_catalog.fetch_podcast_async(fetcher, podcast_id, deadline=deadline)


def refresh_saved_podcast(
    *,
    session: Session,
    owner_scope: str,
    podcast_id: str,
) -> PodcastWithEpisodes:
    """
    Bring a saved podcast up to date with its newest remote episode.

    The remote lookup is best effort: when it fails the stored state is
    returned unchanged.

    Returns:
        PodcastWithEpisodes: The podcast and its stored episodes, oldest first.
    Raises:
        PodcastNotFoundError: If the user has not saved this podcast.
        StoreError: If the database write fails.
    """
    podcast = podcasts_crud.get_podcast(
        session=session,
        podcast_id=podcast_id,
        user_id=owner_scope,
    )
    if podcast is None:
        raise PodcastNotFoundError(podcast_id)

    try:
        remote = asyncio.run(_fetch_remote_podcast_async(podcast_id))
    except (FatalUpstreamError, TransientUpstreamError, ReconcileTimeoutError) as e:
        logger.warning(f"Could not refresh podcast {podcast_id}, serving stored state: {e}")
        remote = None

    remote_episodes = extract_items(remote.get("episodes"), ()) if remote else []
    newest = to_episode_create(normalize(remote_episodes[0])) if remote_episodes else None
    if newest is not None and newest.id not in (podcast.episode_ids or []):
        try:
            episodes_crud.insert_episodes_if_absent(session=session, episodes=[newest])
            podcasts_crud.set_episode_ids(
                session=session,
                podcast=podcast,
                episode_ids=prepend_id(podcast.episode_ids, newest.id),
            )
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreError("refresh podcast", str(e)) from e
        logger.info(f"Podcast {podcast_id} has a new episode {newest.id}")

    episode_ids = podcast.episode_ids or []
    by_id = {
        e.id: e for e in episodes_crud.get_episodes_by_ids(session=session, ids=episode_ids)
    }
    # Stored ids are newest first; undated episodes keep that order reversed
    stored = [by_id[i] for i in reversed(episode_ids) if i in by_id]
    return PodcastWithEpisodes(podcast=podcast, episodes=sort_oldest_first(stored))
