from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "CanonicalRecord",
    "PodcastSummary",
    "TrackQueryResult",
]


class CanonicalRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str | None = None
    title: str | None = None
    secondary_title: str | None = None
    media_url: str | None = None
    image_url: str | None = None
    duration_seconds: int | None = None
    published_at: str | None = None
    label: str | None = None
    copyright_text: str | None = None
    year: int | None = None

    @property
    def is_eligible(self) -> bool:
        """A record needs a media url or a title before it can be persisted."""
        return bool(self.media_url) or bool(self.title)


class PodcastSummary(BaseModel):
    id: str | None = None
    title: str | None = None
    publisher: str | None = None
    image: str | None = None
    episodes: list[CanonicalRecord] = Field(default_factory=list)


class TrackQueryResult(BaseModel):
    query: str
    ok: bool
    records: list[CanonicalRecord] = Field(default_factory=list)
    error: str | None = None
