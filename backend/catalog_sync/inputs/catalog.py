# catalog_sync/inputs/catalog.py

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from catalog_sync.exceptions.base import CatalogValidationError
from catalog_sync.ingestion import config

ModelT = TypeVar("ModelT", bound=BaseModel)


def _required_text(value: Any) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ValueError("must not be empty")
    return text


class PageParams(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class SearchParams(PageParams):
    q: str

    @field_validator("q", mode="before")
    @classmethod
    def strip_query(cls, value: Any) -> str:
        return _required_text(value)


class RecommendationParams(BaseModel):
    queries: list[str] = Field(min_length=1)

    @field_validator("queries", mode="before")
    @classmethod
    def clean_queries(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            raise ValueError("must be a list of search strings")
        return [_required_text(v) for v in value]


class PodcastPayload(BaseModel):
    id: str
    title: str
    publisher: str | None = None
    image: str | None = None
    # Raw episode items, newest first
    episodes: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("id", "title", mode="before")
    @classmethod
    def not_blank(cls, value: Any) -> str:
        return _required_text(value)


class HistoryPayload(BaseModel):
    podcast_id: str = Field(validation_alias=AliasChoices("podcast_id", "podcastId", "podcast"))
    episode_id: str = Field(validation_alias=AliasChoices("episode_id", "episodeId", "episode"))
    watched: int | None = Field(default=None, ge=0)

    @field_validator("podcast_id", "episode_id", mode="before")
    @classmethod
    def not_blank(cls, value: Any) -> str:
        return _required_text(value)


def parse_input(model: type[ModelT], data: Mapping[str, Any] | ModelT) -> ModelT:
    """
    Validate caller-supplied data into `model`.

    Raises:
        CatalogValidationError: With every validation message joined.
    """
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as e:
        messages = [
            f"{'.'.join(str(part) for part in error['loc']) or 'input'}: {error['msg']}"
            for error in e.errors()
        ]
        raise CatalogValidationError("; ".join(messages)) from e
