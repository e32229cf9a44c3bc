from collections.abc import Sequence

from sqlmodel import Session, col, select

from catalog_sync.crud.dialect import dialect_insert
from catalog_sync.models.podcast import Podcast, PodcastCreate
from catalog_sync.utils import now_utc


def get_podcast(
    *,
    session: Session,
    podcast_id: str,
    user_id: str | None = None,
) -> Podcast | None:
    """
    Get a saved podcast by its natural id.

    Parameters:
        session (Session): The database session.
        podcast_id (str): The catalog id of the podcast.
        user_id (str | None): When given, only return the podcast if it is
            owned by this user.
    Returns:
        Podcast | None: The podcast if found, otherwise None.
    """
    podcast = session.get(Podcast, podcast_id)
    if podcast is None:
        return None
    if user_id is not None and podcast.user_id != user_id:
        return None
    return podcast


def get_podcasts_by_owner(
    *,
    session: Session,
    user_id: str,
    limit: int | None = None,
    offset: int = 0,
) -> list[Podcast]:
    stmt = (
        select(Podcast)
        .where(Podcast.user_id == user_id)
        .order_by(col(Podcast.updated_at).desc(), col(Podcast.id))
        .limit(limit)
        .offset(offset)
    )
    return list(session.exec(stmt).all())


def get_podcasts_by_ids(*, session: Session, ids: Sequence[str]) -> list[Podcast]:
    if not ids:
        return []
    stmt = select(Podcast).where(col(Podcast.id).in_(list(ids)))
    return list(session.exec(stmt).all())


def upsert_podcast(*, session: Session, podcast_create: PodcastCreate) -> Podcast:
    """
    Insert a podcast, or update the existing row with the same id.

    A single `INSERT ... ON CONFLICT (id) DO UPDATE` statement, so two writers
    saving the same podcast never produce a unique violation.

    Parameters:
        session (Session): The database session.
        podcast_create (PodcastCreate): The podcast data to store.
    Returns:
        Podcast: The stored podcast row, freshly loaded.
    """
    values = podcast_create.model_dump()
    values["updated_at"] = now_utc()
    insert_stmt = dialect_insert(session, Podcast).values(**values)
    stmt = insert_stmt.on_conflict_do_update(
        index_elements=["id"],
        set_={
            key: insert_stmt.excluded[key]
            for key in values
            if key != "id"
        },
    )
    session.exec(stmt)
    session.flush()
    return session.get(Podcast, podcast_create.id, populate_existing=True)  # type: ignore[return-value]


def set_episode_ids(
    *,
    session: Session,
    podcast: Podcast,
    episode_ids: list[str],
) -> Podcast:
    podcast.episode_ids = list(episode_ids)
    podcast.updated_at = now_utc()
    session.add(podcast)
    session.flush()
    return podcast
