from collections.abc import Sequence

from sqlmodel import Session, col, select

from catalog_sync.crud.dialect import dialect_insert
from catalog_sync.models.episode import Episode, EpisodeCreate


def get_episodes_by_ids(*, session: Session, ids: Sequence[str]) -> list[Episode]:
    """Load episodes with one `IN` query. Order is not guaranteed."""
    if not ids:
        return []
    stmt = select(Episode).where(col(Episode.id).in_(list(ids)))
    return list(session.exec(stmt).all())


def get_existing_episode_ids(*, session: Session, ids: Sequence[str]) -> set[str]:
    if not ids:
        return set()
    stmt = select(Episode.id).where(col(Episode.id).in_(list(ids)))
    return set(session.exec(stmt).all())


def insert_episodes_if_absent(
    *,
    session: Session,
    episodes: Sequence[EpisodeCreate],
) -> list[Episode]:
    """
    Insert the episodes whose ids are not stored yet.

    One lookup for the existing ids, then one bulk insert with
    `ON CONFLICT DO NOTHING` for whatever a concurrent writer got in first.

    Returns:
        list[Episode]: The rows for the episodes that were absent before.
    """
    by_id: dict[str, EpisodeCreate] = {}
    for episode in episodes:
        by_id.setdefault(episode.id, episode)
    if not by_id:
        return []

    existing = get_existing_episode_ids(session=session, ids=list(by_id))
    missing = [episode for episode_id, episode in by_id.items() if episode_id not in existing]
    if not missing:
        return []

    stmt = (
        dialect_insert(session, Episode)
        .values([episode.model_dump() for episode in missing])
        .on_conflict_do_nothing(index_elements=["id"])
    )
    session.exec(stmt)
    session.flush()
    return get_episodes_by_ids(session=session, ids=[episode.id for episode in missing])
