"""Upstream endpoints and environment-backed tuning for catalog ingestion."""

import os

from catalog_sync.core.config import settings

LISTEN_API_KEY: str = settings.LISTEN_API_KEY
LISTEN_API_KEY_HEADER: str = "X-ListenAPI-Key"
PODCAST_SEARCH_URL: str = f"{settings.LISTEN_API_BASE_URL}/search"
BEST_PODCASTS_URL: str = f"{settings.LISTEN_API_BASE_URL}/best_podcasts"
PODCAST_URL_TEMPLATE: str = f"{settings.LISTEN_API_BASE_URL}/podcasts/{{id}}"
TRACK_SEARCH_URL: str = settings.TRACK_SEARCH_URL


def _env_non_negative_int(name: str, default: int) -> int:
    """Read an environment variable as a non-negative integer with a safe default."""
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return max(0, int(raw))
    except ValueError:
        return default


def _env_positive_int(name: str, default: int) -> int:
    """Like `_env_non_negative_int` but never below one."""
    return max(1, _env_non_negative_int(name, default))


def _env_float(name: str, default: float) -> float:
    """Read an environment variable as a non-negative float with a safe default."""
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return max(0.0, float(raw))
    except ValueError:
        return default


FETCH_TIMEOUT_SECONDS = _env_float("FETCH_TIMEOUT_SECONDS", 7.0)
FETCH_MAX_ATTEMPTS = _env_positive_int("FETCH_MAX_ATTEMPTS", 4)
FETCH_BASE_DELAY_MS = _env_non_negative_int("FETCH_BASE_DELAY_MS", 500)
FETCH_JITTER_MS = _env_non_negative_int("FETCH_JITTER_MS", 200)

BATCH_SIZE = _env_positive_int("CATALOG_BATCH_SIZE", 3)
INTER_BATCH_DELAY_MS = _env_non_negative_int("CATALOG_INTER_BATCH_DELAY_MS", 500)
RECONCILE_DEADLINE_SECONDS = _env_float("RECONCILE_DEADLINE_SECONDS", 60.0)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = _env_positive_int("CATALOG_MAX_PAGE_SIZE", 100)

BEST_PODCASTS_GENRE_ID = "93"
BEST_PODCASTS_REGION = "us"

PODCAST_CONTAINER_KEYS = ("podcasts", "best_podcasts")
TRACK_CONTAINER_KEYS = ("songs", "tracks")
