from sqlmodel import Session, col, select

from catalog_sync.models.history import PodcastHistory, RecentlyPlayedPodcast
from catalog_sync.utils import now_utc


def get_podcast_history_row(
    *,
    session: Session,
    user_id: str,
    podcast_id: str,
    episode_id: str,
) -> PodcastHistory | None:
    stmt = select(PodcastHistory).where(
        PodcastHistory.user_id == user_id,
        PodcastHistory.podcast_id == podcast_id,
        PodcastHistory.episode_id == episode_id,
    )
    return session.exec(stmt).first()


def create_podcast_history(
    *,
    session: Session,
    user_id: str,
    podcast_id: str,
    episode_id: str,
    watched: int | None = None,
) -> PodcastHistory:
    """
    Create a history row. Raises an IntegrityError if the user already has a
    row for this podcast episode.
    """
    now = now_utc()
    db_obj = PodcastHistory(
        user_id=user_id,
        podcast_id=podcast_id,
        episode_id=episode_id,
        watched=watched,
        created_at=now,
        updated_at=now,
    )
    session.add(db_obj)
    session.flush()
    return db_obj


def touch_podcast_history(
    *,
    session: Session,
    row: PodcastHistory,
    watched: int | None = None,
) -> PodcastHistory:
    row.updated_at = now_utc()
    if watched is not None:
        row.watched = watched
    session.add(row)
    session.flush()
    return row


def get_podcast_history(
    *,
    session: Session,
    user_id: str,
    limit: int | None = None,
    offset: int = 0,
) -> list[PodcastHistory]:
    """History rows for a user, most recently touched first."""
    stmt = (
        select(PodcastHistory)
        .where(PodcastHistory.user_id == user_id)
        .order_by(col(PodcastHistory.updated_at).desc(), col(PodcastHistory.id).desc())
        .limit(limit)
        .offset(offset)
    )
    return list(session.exec(stmt).all())


def get_recently_played_podcast_row(
    *,
    session: Session,
    user_id: str,
    podcast_id: str,
) -> RecentlyPlayedPodcast | None:
    stmt = select(RecentlyPlayedPodcast).where(
        RecentlyPlayedPodcast.user_id == user_id,
        RecentlyPlayedPodcast.podcast_id == podcast_id,
    )
    return session.exec(stmt).first()


def create_recently_played_podcast(
    *,
    session: Session,
    user_id: str,
    podcast_id: str,
) -> RecentlyPlayedPodcast:
    db_obj = RecentlyPlayedPodcast(
        user_id=user_id,
        podcast_id=podcast_id,
        played_at=now_utc(),
    )
    session.add(db_obj)
    session.flush()
    return db_obj


def touch_recently_played_podcast(
    *,
    session: Session,
    row: RecentlyPlayedPodcast,
) -> RecentlyPlayedPodcast:
    row.played_at = now_utc()
    session.add(row)
    session.flush()
    return row


def get_recently_played_podcasts(
    *,
    session: Session,
    user_id: str,
    limit: int | None = None,
    offset: int = 0,
) -> list[RecentlyPlayedPodcast]:
    stmt = (
        select(RecentlyPlayedPodcast)
        .where(RecentlyPlayedPodcast.user_id == user_id)
        .order_by(
            col(RecentlyPlayedPodcast.played_at).desc(),
            col(RecentlyPlayedPodcast.id).desc(),
        )
        .limit(limit)
        .offset(offset)
    )
    return list(session.exec(stmt).all())
