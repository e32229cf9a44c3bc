import datetime as dt

from sqlmodel import Field, SQLModel

__all__ = [
    "EpisodeCreate",
    "Episode",
]


class EpisodeCreate(SQLModel):
    id: str
    title: str | None = None
    audio: str | None = None
    audio_length: int | None = None
    published_at: dt.date | None = None


class Episode(EpisodeCreate, table=True):
    id: str = Field(primary_key=True)
    published_at: dt.date | None = Field(default=None, index=True)
