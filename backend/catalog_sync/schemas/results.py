from dataclasses import dataclass, field
from typing import Any

from catalog_sync.models.episode import Episode
from catalog_sync.models.history import PodcastHistory, RecentlyPlayedPodcast
from catalog_sync.models.podcast import Podcast
from catalog_sync.schemas.catalog import CanonicalRecord, TrackQueryResult

__all__ = [
    "ReconcileResult",
    "SavedPodcastResult",
    "PodcastWithEpisodes",
    "RecommendationResult",
    "HistoryEntry",
    "PlayedPodcastEntry",
]


@dataclass
class ReconcileResult:
    accepted: list[CanonicalRecord] = field(default_factory=list)
    rejected: list[CanonicalRecord] = field(default_factory=list)
    ineligible: list[CanonicalRecord] = field(default_factory=list)
    inserted_rows: list[Any] = field(default_factory=list)


@dataclass
class SavedPodcastResult:
    podcast: Podcast
    inserted_episodes: list[Episode]


@dataclass
class PodcastWithEpisodes:
    podcast: Podcast
    # Oldest first
    episodes: list[Episode]


@dataclass
class RecommendationResult:
    results: list[TrackQueryResult]
    accepted: list[CanonicalRecord]
    total: int


@dataclass
class HistoryEntry:
    history: PodcastHistory
    # {id, title, image} of the podcast, when it is saved
    podcast: dict[str, Any] | None
    episode: Episode | None


@dataclass
class PlayedPodcastEntry:
    played: RecentlyPlayedPodcast
    podcast: dict[str, Any] | None
