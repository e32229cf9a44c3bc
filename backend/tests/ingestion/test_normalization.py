import datetime as dt
import math

import pytest

from catalog_sync.ingestion.normalization import (
    extract_items,
    normalize,
    normalize_many,
    published_sort_key,
    resolve_alias,
    to_iso_date,
    to_podcast_summary,
)
from catalog_sync.schemas.catalog import CanonicalRecord

TRACK_ITEM = {
    "id": "xYz12",
    "song": "  Blue in Green ",
    "primary_artists": "Miles Davis",
    "media_url": "https://aac.example.com/blue.mp4",
    "image": "https://img.example.com/blue.jpg",
    "duration": "337",
    "album": "Kind of Blue",
    "copyright_text": "(C) 1959 Columbia",
    "year": "1959",
}

EPISODE_ITEM = {
    "id": 9876,
    "title": "Episode 12",
    "audio": "https://audio.example.com/ep12.mp3",
    "audio_length_sec": 1834,
    "pub_date_ms": 1700000000000,
    "thumbnail": "https://img.example.com/ep12.jpg",
}


def test_resolve_alias_skips_missing_and_none():
    item = {"title": None, "name": "Fallback", "song": "Ignored"}

    assert resolve_alias(item, ("title", "name", "song")) == "Fallback"
    assert resolve_alias(item, ("nope",)) is None
    assert resolve_alias(None, ("title",)) is None


def test_normalize_track_aliases():
    record = normalize(TRACK_ITEM)

    assert record == CanonicalRecord(
        id="xYz12",
        title="Blue in Green",
        secondary_title="Miles Davis",
        media_url="https://aac.example.com/blue.mp4",
        image_url="https://img.example.com/blue.jpg",
        duration_seconds=337,
        published_at=None,
        label="Kind of Blue",
        copyright_text="(C) 1959 Columbia",
        year=1959,
    )


def test_normalize_episode_aliases():
    record = normalize(EPISODE_ITEM)

    assert record.id == "9876"
    assert record.media_url == "https://audio.example.com/ep12.mp3"
    assert record.duration_seconds == 1834
    assert record.published_at == "2023-11-14"
    assert record.image_url == "https://img.example.com/ep12.jpg"


def test_normalize_picks_best_quality_download_url():
    record = normalize(
        {
            "name": "Track",
            "downloadUrl": [
                {"quality": "96kbps", "url": "https://cdn.example.com/96.mp4"},
                {"quality": "320kbps", "url": "https://cdn.example.com/320.mp4"},
            ],
        }
    )

    assert record.media_url == "https://cdn.example.com/320.mp4"


def test_normalize_track_alias_precedence():
    record = normalize(
        {
            "name": "Track",
            "music_name": "Composer",
            "publisher": "Label Co",
            "url": "https://www.example.com/song/track",
            "downloadUrl": [{"quality": "320kbps", "url": "https://cdn.example.com/320.mp4"}],
        }
    )

    assert record.title == "Track"
    assert record.secondary_title == "Composer"
    assert record.label == "Label Co"
    assert record.media_url == "https://www.example.com/song/track"


def test_normalize_never_raises_on_garbage():
    record = normalize({"duration": "abc", "year": float("nan"), "published_at": "not a date"})

    assert record == CanonicalRecord()
    assert not record.is_eligible


@pytest.mark.parametrize("raw", [TRACK_ITEM, EPISODE_ITEM, {}, {"singers": ["A", "B"], "name": "x"}])
def test_normalize_is_idempotent(raw):
    once = normalize(raw)

    assert normalize(once.model_dump()) == once
    assert normalize(once) == once


@pytest.mark.parametrize(
    "payload",
    [
        {"results": [TRACK_ITEM, TRACK_ITEM]},
        {"data": [TRACK_ITEM, TRACK_ITEM]},
        {"songs": [TRACK_ITEM, TRACK_ITEM]},
        [TRACK_ITEM, TRACK_ITEM],
    ],
)
def test_extract_items_container_shapes(payload):
    assert extract_items(payload) == [TRACK_ITEM, TRACK_ITEM]


def test_extract_items_bare_object_is_one_item():
    assert extract_items(TRACK_ITEM) == [TRACK_ITEM]


def test_extract_items_drops_non_mappings_and_none():
    assert extract_items(None) == []
    assert extract_items("nope") == []
    assert extract_items([TRACK_ITEM, "junk", 3, None]) == [TRACK_ITEM]


def test_extract_items_unwraps_search_hits():
    payload = {"results": [{"podcast": {"id": "p1"}}, {"id": "p2"}]}

    assert extract_items(payload, unwrap_key="podcast") == [{"id": "p1"}, {"id": "p2"}]


def test_normalize_many_uses_named_container():
    records = normalize_many({"best_podcasts": [{"id": "a", "title": "A"}]}, ("best_podcasts",))

    assert [r.id for r in records] == ["a"]


@pytest.mark.parametrize(
    "value, expected",
    [
        (1700000000000, "2023-11-14"),
        ("1700000000000", "2023-11-14"),
        ("2024-01-05T10:00:00Z", "2024-01-05"),
        ("2024-01-05", "2024-01-05"),
        (dt.date(2020, 2, 29), "2020-02-29"),
        (dt.datetime(2021, 3, 4, 5, 6), "2021-03-04"),
        (None, None),
        ("", None),
        ("yesterday", None),
        ("nan", None),
        ("-inf", None),
    ],
)
def test_to_iso_date(value, expected):
    assert to_iso_date(value) == expected


def test_published_sort_key_missing_is_infinite():
    assert published_sort_key({"pub_date_ms": 100}) == 100.0
    assert published_sort_key({}) == math.inf
    assert published_sort_key({"pub_date_ms": "nan"}) == math.inf
    assert published_sort_key(CanonicalRecord(published_at="2024-01-01")) < math.inf


def test_to_podcast_summary_uses_original_fields():
    summary = to_podcast_summary(
        {
            "id": "pod-1",
            "title_original": "Original Title",
            "publisher_original": "Publisher",
            "thumbnail": "https://img.example.com/pod.jpg",
        },
        [normalize(EPISODE_ITEM)],
    )

    assert summary.id == "pod-1"
    assert summary.title == "Original Title"
    assert summary.publisher == "Publisher"
    assert summary.image == "https://img.example.com/pod.jpg"
    assert [e.id for e in summary.episodes] == ["9876"]
