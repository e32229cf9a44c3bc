import datetime as dt

from sqlalchemy import JSON, DateTime
from sqlmodel import Column, Field, SQLModel

__all__ = [
    "PodcastBase",
    "PodcastCreate",
    "Podcast",
]


# Shared properties
class PodcastBase(SQLModel):
    id: str = Field(primary_key=True)
    title: str
    publisher: str | None = None
    image: str | None = None


# Properties to receive on podcast save
class PodcastCreate(PodcastBase):
    user_id: str | None = None
    # Newest episode id first
    episode_ids: list[str] | None = None


class Podcast(PodcastBase, table=True):
    user_id: str | None = Field(default=None, index=True)
    episode_ids: list[str] | None = Field(
        sa_column=Column(JSON),
        default=None,
    )
    updated_at: dt.datetime | None = Field(
        sa_column=Column(DateTime(timezone=True)),
        default=None,
    )
