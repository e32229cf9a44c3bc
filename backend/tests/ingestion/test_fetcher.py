import asyncio

import aiohttp
import pytest

from catalog_sync.core.enums import FailureKind
from catalog_sync.exceptions.upstream import (
    FatalUpstreamError,
    MalformedResponseError,
    ReconcileTimeoutError,
    TransientUpstreamError,
    UpstreamUnavailableError,
)
from catalog_sync.ingestion.batching import Deadline
from catalog_sync.ingestion.fetcher import CatalogFetcher, classify_status

from fixtures.fake_http import FakeResponse, json_response

SEARCH_URL = "https://tracks.example.com/result/"


@pytest.mark.parametrize(
    "status, expected",
    [
        (200, None),
        (204, None),
        (429, FailureKind.TRANSIENT),
        (500, FailureKind.TRANSIENT),
        (503, FailureKind.TRANSIENT),
        (400, FailureKind.FATAL),
        (404, FailureKind.FATAL),
        (301, FailureKind.FATAL),
    ],
)
def test_classify_status(status: int, expected: FailureKind | None):
    assert classify_status(status) is expected


def test_rate_limited_twice_then_ok_within_three_attempts(make_fetcher, sleep_recorder):
    fetcher = make_fetcher(
        [FakeResponse(429), FakeResponse(429), json_response({"songs": [{"song": "Jazz"}]})],
    )

    body = asyncio.run(
        fetcher.fetch_json(SEARCH_URL, params={"query": "jazz"}, max_attempts=3)
    )

    assert body == {"songs": [{"song": "Jazz"}]}
    assert len(fetcher.session.calls) == 3
    assert sleep_recorder.delays == [0.5, 1.0]


def test_rate_limited_twice_with_two_attempts_is_unavailable(make_fetcher):
    fetcher = make_fetcher(
        [FakeResponse(429), FakeResponse(429), json_response({"songs": []})],
    )

    with pytest.raises(UpstreamUnavailableError) as exc_info:
        asyncio.run(fetcher.fetch_json(SEARCH_URL, params={"query": "jazz"}, max_attempts=2))

    assert exc_info.value.attempts == 2
    assert exc_info.value.last_error.status == 429
    assert len(fetcher.session.calls) == 2


def test_always_rate_limited_uses_every_attempt_with_growing_delays(
    make_fetcher, sleep_recorder
):
    fetcher = make_fetcher(lambda url, params: FakeResponse(429), max_attempts=4)

    with pytest.raises(UpstreamUnavailableError):
        asyncio.run(fetcher.fetch_json(SEARCH_URL))

    assert len(fetcher.session.calls) == 4
    assert sleep_recorder.delays == [0.5, 1.0, 2.0]
    assert all(a < b for a, b in zip(sleep_recorder.delays, sleep_recorder.delays[1:]))


def test_jitter_is_added_to_backoff(make_fetcher, sleep_recorder):
    fetcher = make_fetcher(
        [FakeResponse(503), json_response([])],
        jitter=lambda low, high: high,
        jitter_ms=200,
    )

    asyncio.run(fetcher.fetch_json(SEARCH_URL))

    assert sleep_recorder.delays == [0.7]


def test_not_found_is_fatal_without_retry(make_fetcher, sleep_recorder):
    fetcher = make_fetcher([FakeResponse(404), json_response({})])

    with pytest.raises(FatalUpstreamError) as exc_info:
        asyncio.run(fetcher.fetch_json(SEARCH_URL))

    assert not isinstance(exc_info.value, UpstreamUnavailableError)
    assert exc_info.value.status == 404
    assert len(fetcher.session.calls) == 1
    assert sleep_recorder.delays == []


def test_malformed_body_is_not_retried(make_fetcher):
    fetcher = make_fetcher([FakeResponse(200, "<html>oops</html>"), json_response({})])

    with pytest.raises(MalformedResponseError):
        asyncio.run(fetcher.fetch_json(SEARCH_URL))

    assert len(fetcher.session.calls) == 1


def test_undecodable_body_is_malformed(make_fetcher):
    fetcher = make_fetcher([FakeResponse(200, b'{"a": "\xff\xfe"}')])

    with pytest.raises(MalformedResponseError):
        asyncio.run(fetcher.fetch_json(SEARCH_URL))

    assert len(fetcher.session.calls) == 1


def test_timeout_is_retried(make_fetcher, sleep_recorder):
    fetcher = make_fetcher([asyncio.TimeoutError(), json_response({"ok": True})])

    body = asyncio.run(fetcher.fetch_json(SEARCH_URL))

    assert body == {"ok": True}
    assert len(fetcher.session.calls) == 2
    assert sleep_recorder.delays == [0.5]


def test_connection_error_is_fatal(make_fetcher):
    fetcher = make_fetcher([aiohttp.ClientConnectionError("refused"), json_response({})])

    with pytest.raises(FatalUpstreamError):
        asyncio.run(fetcher.fetch_json(SEARCH_URL))

    assert len(fetcher.session.calls) == 1


def test_request_carries_headers_params_and_timeout(make_fetcher):
    fetcher = make_fetcher(
        [json_response({})],
        headers={"X-ListenAPI-Key": "secret"},
        timeout_seconds=7.0,
    )

    asyncio.run(fetcher.fetch_json(SEARCH_URL, params={"query": "jazz"}))

    call = fetcher.session.calls[0]
    assert call["url"] == SEARCH_URL
    assert call["params"] == {"query": "jazz"}
    assert call["headers"] == {"X-ListenAPI-Key": "secret"}
    assert isinstance(call["timeout"], aiohttp.ClientTimeout)
    assert call["timeout"].total == 7.0


def test_expired_deadline_stops_before_request(make_fetcher):
    now = [0.0]
    deadline = Deadline(seconds=1.0, clock=lambda: now[0])
    now[0] = 5.0
    fetcher = make_fetcher([json_response({})])

    with pytest.raises(ReconcileTimeoutError):
        asyncio.run(fetcher.fetch_json(SEARCH_URL, deadline=deadline))

    assert fetcher.session.calls == []


def test_deadline_expiring_during_backoff_aborts_retries(make_fetcher):
    now = [0.0]
    deadline = Deadline(seconds=1.0, clock=lambda: now[0])

    async def slow_sleep(seconds: float) -> None:
        now[0] += 10

    fetcher = make_fetcher(
        lambda url, params: FakeResponse(500),
        sleep=slow_sleep,
    )

    with pytest.raises(ReconcileTimeoutError):
        asyncio.run(fetcher.fetch_json(SEARCH_URL, deadline=deadline))

    assert len(fetcher.session.calls) == 1


def test_backoff_delay_doubles():
    fetcher = CatalogFetcher(session=None, base_delay_ms=250)  # type: ignore[arg-type]

    assert [fetcher.backoff_delay_ms(n) for n in (1, 2, 3, 4)] == [250, 500, 1000, 2000]


def test_transient_error_detail_mentions_status():
    error = TransientUpstreamError(SEARCH_URL, status=429)

    assert "429" in error.detail
    assert error.status_code == 503
