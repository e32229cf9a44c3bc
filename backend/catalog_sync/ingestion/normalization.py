"""Map heterogeneous upstream payloads onto `CanonicalRecord`."""

import math
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timezone
from typing import Any

from catalog_sync.schemas.catalog import CanonicalRecord, PodcastSummary

# Canonical field -> alias keys, canonical name first so normalizing an
# already-canonical record is a no-op.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id", "_id", "podcast_id", "episode_id"),
    "title": ("title", "song", "title_original", "name"),
    "secondary_title": (
        "secondary_title",
        "music",
        "music_name",
        "publisher",
        "publisher_original",
        "artist",
        "primary_artists",
        "singers",
    ),
    # Podcast episodes carry their mp3 in `audio` and a web page in `link`
    "media_url": ("media_url", "url", "audio", "mediaURL", "downloadUrl", "more_info", "link"),
    "image_url": ("image_url", "image", "thumbnail", "img", "cover"),
    "duration_seconds": (
        "duration_seconds",
        "audio_length_sec",
        "duration",
        "audio_length",
        "length",
        "time",
    ),
    "published_at": ("published_at", "pub_date_ms", "publishedAt", "release_date", "date"),
    "label": ("label", "album", "album_name", "publisher"),
    "copyright_text": ("copyright_text", "copyright", "copyrightText"),
    "year": ("year", "release_year", "released"),
}

DEFAULT_CONTAINER_KEYS = ("podcasts", "best_podcasts", "episodes", "songs", "tracks")


def resolve_alias(item: Mapping[str, Any] | None, aliases: Iterable[str]) -> Any:
    """Return the first alias value that is present and not None."""
    if not isinstance(item, Mapping):
        return None
    for key in aliases:
        value = item.get(key)
        if value is not None:
            return value
    return None


def extract_items(
    payload: Any,
    named_keys: Iterable[str] = DEFAULT_CONTAINER_KEYS,
    unwrap_key: str | None = None,
) -> list[Mapping[str, Any]]:
    """
    Flatten any supported container shape into a list of raw items.

    Accepts a bare list, a mapping holding a `results`, `data` or named list,
    or a bare mapping, which is treated as a single item.
    """
    if payload is None:
        return []

    if isinstance(payload, list):
        raw_items: list[Any] = payload
    elif isinstance(payload, Mapping):
        raw_items = [payload]
        for key in ("results", "data", *named_keys):
            candidate = payload.get(key)
            if isinstance(candidate, list):
                raw_items = candidate
                break
    else:
        return []

    items: list[Mapping[str, Any]] = []
    for raw in raw_items:
        if unwrap_key and isinstance(raw, Mapping) and isinstance(raw.get(unwrap_key), Mapping):
            raw = raw[unwrap_key]
        if isinstance(raw, Mapping):
            items.append(raw)
    return items


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        value = ", ".join(str(v) for v in value if v is not None)
    text = str(value).strip()
    return text or None


def _as_url(value: Any) -> str | None:
    """Pick a url from a plain string or a list of `{quality, url}` variants (last wins)."""
    if isinstance(value, (list, tuple)):
        for variant in reversed(value):
            if isinstance(variant, Mapping):
                variant = variant.get("url") or variant.get("link")
            if isinstance(variant, str) and variant.strip():
                return variant.strip()
        return None
    if isinstance(value, Mapping):
        return _as_text(value.get("url") or value.get("link"))
    return _as_text(value)


def _as_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return int(number)


def _epoch_ms(value: Any) -> float | None:
    """Best-effort conversion of a date-like value to epoch milliseconds."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        moment = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        return moment.timestamp() * 1000
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc).timestamp() * 1000
    if isinstance(value, (int, float)):
        return None if math.isnan(value) or math.isinf(value) else float(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        pass
    else:
        return number if math.isfinite(number) else None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    return _epoch_ms(parsed)


def to_iso_date(value: Any) -> str | None:
    """Normalize epoch-ms, ISO strings and date objects to `YYYY-MM-DD`."""
    ms = _epoch_ms(value)
    if ms is None:
        return None
    try:
        moment = datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
    return moment.date().isoformat()


def published_sort_key(item: Any) -> float:
    """Chronological sort key; missing or unparseable dates sort as newest."""
    if isinstance(item, CanonicalRecord):
        value = item.published_at
    elif isinstance(item, Mapping):
        value = resolve_alias(item, FIELD_ALIASES["published_at"])
    else:
        value = getattr(item, "published_at", None)
    ms = _epoch_ms(value)
    return math.inf if ms is None else ms


def normalize(raw_item: Mapping[str, Any] | CanonicalRecord) -> CanonicalRecord:
    """Map one raw upstream item onto the canonical record shape. Never raises."""
    item: Mapping[str, Any] = (
        raw_item.model_dump() if isinstance(raw_item, CanonicalRecord) else raw_item
    )
    return CanonicalRecord(
        id=_as_text(resolve_alias(item, FIELD_ALIASES["id"])),
        title=_as_text(resolve_alias(item, FIELD_ALIASES["title"])),
        secondary_title=_as_text(resolve_alias(item, FIELD_ALIASES["secondary_title"])),
        media_url=_as_url(resolve_alias(item, FIELD_ALIASES["media_url"])),
        image_url=_as_url(resolve_alias(item, FIELD_ALIASES["image_url"])),
        duration_seconds=_as_int(resolve_alias(item, FIELD_ALIASES["duration_seconds"])),
        published_at=to_iso_date(resolve_alias(item, FIELD_ALIASES["published_at"])),
        label=_as_text(resolve_alias(item, FIELD_ALIASES["label"])),
        copyright_text=_as_text(resolve_alias(item, FIELD_ALIASES["copyright_text"])),
        year=_as_int(resolve_alias(item, FIELD_ALIASES["year"])),
    )


def normalize_many(
    payload: Any,
    named_keys: Iterable[str] = DEFAULT_CONTAINER_KEYS,
    unwrap_key: str | None = None,
) -> list[CanonicalRecord]:
    return [normalize(item) for item in extract_items(payload, named_keys, unwrap_key)]


def podcast_id(raw: Mapping[str, Any] | None) -> str | None:
    return _as_text(resolve_alias(raw, ("id", "_id", "podcast_id")))


def to_podcast_summary(
    raw: Mapping[str, Any] | None,
    episodes: list[CanonicalRecord] | None = None,
) -> PodcastSummary:
    """Base podcast metadata, optionally with its normalized episodes."""
    return PodcastSummary(
        id=podcast_id(raw),
        title=_as_text(resolve_alias(raw, ("title", "title_original"))),
        publisher=_as_text(resolve_alias(raw, ("publisher", "publisher_original"))),
        image=_as_url(resolve_alias(raw, ("image", "thumbnail"))),
        episodes=episodes or [],
    )
