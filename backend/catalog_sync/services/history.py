from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from catalog_sync.crud import episode as episodes_crud
from catalog_sync.crud import history as history_crud
from catalog_sync.crud import podcast as podcasts_crud
from catalog_sync.exceptions.base import CatalogValidationError
from catalog_sync.exceptions.store import StoreError
from catalog_sync.ingestion import config
from catalog_sync.inputs.catalog import HistoryPayload, PageParams, parse_input
from catalog_sync.models.history import PodcastHistory, RecentlyPlayedPodcast
from catalog_sync.models.podcast import Podcast
from catalog_sync.schemas.results import HistoryEntry, PlayedPodcastEntry
from catalog_sync.services.reconcile import require_owner_scope, sort_newest_first


def _podcast_brief(podcast: Podcast | None) -> dict[str, str | None] | None:
    if podcast is None:
        return None
    return {"id": podcast.id, "title": podcast.title, "image": podcast.image}


def record_podcast_history(
    *,
    session: Session,
    owner_scope: str,
    podcast_id: str,
    episode_id: str,
    watched: int | None = None,
) -> tuple[PodcastHistory, bool]:
    """
    Record that a user listened to a podcast episode.

    An existing entry for the same episode only gets a fresh server timestamp
    (and watch progress), so the history never holds duplicates.

    Returns:
        tuple[PodcastHistory, bool]: The row and whether it was created.
    Raises:
        CatalogValidationError: If a podcast or episode id is missing.
        StoreError: If the database write fails.
    """
    require_owner_scope(owner_scope)
    payload = parse_input(
        HistoryPayload,
        {"podcast_id": podcast_id, "episode_id": episode_id, "watched": watched},
    )
    keys = {
        "user_id": owner_scope,
        "podcast_id": payload.podcast_id,
        "episode_id": payload.episode_id,
    }

    try:
        row = history_crud.get_podcast_history_row(session=session, **keys)
        created = row is None
        if row is None:
            try:
                row = history_crud.create_podcast_history(
                    session=session, watched=payload.watched, **keys
                )
                session.commit()
            except IntegrityError:
                # Lost the race against a concurrent insert of the same entry
                session.rollback()
                created = False
                row = history_crud.get_podcast_history_row(session=session, **keys)
                if row is None:
                    raise
        if not created:
            row = history_crud.touch_podcast_history(
                session=session, row=row, watched=payload.watched
            )
            session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise StoreError("record podcast history", str(e)) from e
    return row, created


def get_podcast_history(
    *,
    session: Session,
    owner_scope: str,
    page: int = 1,
    limit: int = config.DEFAULT_PAGE_SIZE,
) -> list[HistoryEntry]:
    """One page of history newest first, with podcast and episode details loaded in bulk."""
    require_owner_scope(owner_scope)
    paging = parse_input(PageParams, {"page": page, "limit": limit})
    rows = sort_newest_first(
        history_crud.get_podcast_history(
            session=session, user_id=owner_scope, limit=paging.limit, offset=paging.offset
        ),
        "updated_at",
    )
    podcasts = {
        p.id: p
        for p in podcasts_crud.get_podcasts_by_ids(
            session=session, ids=list({row.podcast_id for row in rows})
        )
    }
    episodes = {
        e.id: e
        for e in episodes_crud.get_episodes_by_ids(
            session=session, ids=list({row.episode_id for row in rows})
        )
    }
    return [
        HistoryEntry(
            history=row,
            podcast=_podcast_brief(podcasts.get(row.podcast_id)),
            episode=episodes.get(row.episode_id),
        )
        for row in rows
    ]


def record_played_podcast(
    *,
    session: Session,
    owner_scope: str,
    podcast_id: str,
) -> tuple[RecentlyPlayedPodcast, bool]:
    require_owner_scope(owner_scope)
    if not podcast_id or not str(podcast_id).strip():
        raise CatalogValidationError("podcast_id: must not be empty")
    podcast_id = str(podcast_id).strip()

    try:
        row = history_crud.get_recently_played_podcast_row(
            session=session, user_id=owner_scope, podcast_id=podcast_id
        )
        if row is None:
            row = history_crud.create_recently_played_podcast(
                session=session, user_id=owner_scope, podcast_id=podcast_id
            )
            created = True
        else:
            row = history_crud.touch_recently_played_podcast(session=session, row=row)
            created = False
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise StoreError("record played podcast", str(e)) from e
    return row, created


def get_played_podcasts(
    *,
    session: Session,
    owner_scope: str,
    page: int = 1,
    limit: int = config.DEFAULT_PAGE_SIZE,
) -> list[PlayedPodcastEntry]:
    require_owner_scope(owner_scope)
    paging = parse_input(PageParams, {"page": page, "limit": limit})
    rows = sort_newest_first(
        history_crud.get_recently_played_podcasts(
            session=session, user_id=owner_scope, limit=paging.limit, offset=paging.offset
        ),
        "played_at",
    )
    podcasts = {
        p.id: p
        for p in podcasts_crud.get_podcasts_by_ids(
            session=session, ids=[row.podcast_id for row in rows]
        )
    }
    return [
        PlayedPodcastEntry(played=row, podcast=_podcast_brief(podcasts.get(row.podcast_id)))
        for row in rows
    ]
