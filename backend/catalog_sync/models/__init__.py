from .podcast import Podcast, PodcastCreate
from .episode import Episode, EpisodeCreate
from .recommendation import PreviouslyRecommended, PreviouslyRecommendedCreate
from .history import PodcastHistory, RecentlyPlayedPodcast

__all__ = [
    "Podcast",
    "PodcastCreate",
    "Episode",
    "EpisodeCreate",
    "PreviouslyRecommended",
    "PreviouslyRecommendedCreate",
    "PodcastHistory",
    "RecentlyPlayedPodcast",
]
