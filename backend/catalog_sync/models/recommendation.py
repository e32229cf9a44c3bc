import datetime as dt

from sqlalchemy import DateTime
from sqlmodel import Column, Field, SQLModel

__all__ = [
    "PreviouslyRecommendedCreate",
    "PreviouslyRecommended",
]


class PreviouslyRecommendedCreate(SQLModel):
    user_id: str
    copyright_text: str | None = None
    duration: int | None = None
    image: str | None = None
    label: str | None = None
    media_url: str | None = None
    music: str | None = None
    song: str | None = None
    year: int | None = None


class PreviouslyRecommended(PreviouslyRecommendedCreate, table=True):
    __tablename__ = "previously_recommended"

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    created_at: dt.datetime | None = Field(
        sa_column=Column(DateTime(timezone=True)),
        default=None,
    )
