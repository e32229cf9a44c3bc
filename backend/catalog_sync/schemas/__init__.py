from .catalog import CanonicalRecord, PodcastSummary, TrackQueryResult

__all__ = ["CanonicalRecord", "PodcastSummary", "TrackQueryResult"]
