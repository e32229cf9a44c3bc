import datetime as dt

import pytest

from catalog_sync.ingestion import config
from catalog_sync.utils import as_utc, chunked, now_utc, title_key, unique_strings


@pytest.mark.parametrize(
    "title, expected",
    [("  Blue In Green ", "blue in green"), ("STRASSE", "strasse"), ("   ", None), (None, None)],
)
def test_title_key(title, expected):
    assert title_key(title) == expected


def test_chunked_keeps_remainder():
    assert chunked([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]
    assert chunked([], 3) == []


def test_unique_strings_keeps_first_seen_order():
    assert unique_strings(["b", None, "a", "b", "", 3]) == ["b", "a", "3"]


def test_now_utc_is_aware():
    assert now_utc().utcoffset() == dt.timedelta(0)


def test_as_utc_normalizes_naive_and_offset_values():
    utc = dt.timezone.utc
    assert as_utc(dt.datetime(2024, 1, 1)) == dt.datetime(2024, 1, 1, tzinfo=utc)
    shifted = dt.datetime(2024, 1, 1, 2, tzinfo=dt.timezone(dt.timedelta(hours=2)))
    assert as_utc(shifted).hour == 0
    assert as_utc(shifted).tzinfo == utc


@pytest.mark.parametrize(
    "raw, expected",
    [(None, 5), ("7", 7), ("-3", 0), ("abc", 5)],
)
def test_env_non_negative_int(raw, expected, monkeypatch):
    if raw is None:
        monkeypatch.delenv("CATALOG_TEST_KNOB", raising=False)
    else:
        monkeypatch.setenv("CATALOG_TEST_KNOB", raw)

    assert config._env_non_negative_int("CATALOG_TEST_KNOB", 5) == expected


def test_env_positive_int_never_below_one(monkeypatch):
    monkeypatch.setenv("CATALOG_TEST_KNOB", "0")

    assert config._env_positive_int("CATALOG_TEST_KNOB", 3) == 1


def test_env_float(monkeypatch):
    monkeypatch.setenv("CATALOG_TEST_KNOB", "2.5")
    assert config._env_float("CATALOG_TEST_KNOB", 7.0) == 2.5

    monkeypatch.setenv("CATALOG_TEST_KNOB", "soon")
    assert config._env_float("CATALOG_TEST_KNOB", 7.0) == 7.0


def test_default_knobs():
    assert config.FETCH_TIMEOUT_SECONDS == 7.0
    assert config.FETCH_JITTER_MS == 200
    assert config.PODCAST_URL_TEMPLATE.endswith("/podcasts/{id}")
