import datetime as dt

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Column, Field, SQLModel

__all__ = [
    "PodcastHistory",
    "RecentlyPlayedPodcast",
]


class PodcastHistory(SQLModel, table=True):
    __tablename__ = "podcast_history"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "podcast_id",
            "episode_id",
            name="uq_podcasthistory_user_podcast_episode",
        ),
    )
    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    podcast_id: str
    episode_id: str
    watched: int | None = None
    created_at: dt.datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: dt.datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )


class RecentlyPlayedPodcast(SQLModel, table=True):
    __tablename__ = "recently_played_podcast"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "podcast_id",
            name="uq_recentlyplayedpodcast_user_podcast",
        ),
    )
    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    podcast_id: str
    played_at: dt.datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
