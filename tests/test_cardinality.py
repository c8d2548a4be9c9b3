"""Tests for the TSDB status client and cardinality data."""

from __future__ import annotations

import json
from typing import Any
from urllib.error import HTTPError, URLError

import pytest

from dashsense.cardinality import CardinalityClient, CardinalityData
from dashsense.cardinality.client import get_cardinality_client, parse_tsdb_status
from dashsense.exceptions import CardinalityError

TSDB_STATUS = {
    "status": "success",
    "data": {
        "headStats": {"numSeries": 1_500_000, "chunkCount": 3_000_000},
        "seriesCountByMetricName": [
            {"name": "http_requests_total", "value": 50_000},
            {"name": "up", "value": 120},
        ],
        "labelValueCountByLabelName": [
            {"name": "pod", "value": 3_000},
            {"name": "job", "value": 12},
        ],
        "seriesCountByLabelValuePair": [
            {"name": "job=api", "value": 900},
        ],
    },
}


class FakeResponse:
    def __init__(self, body: bytes, status: int = 200) -> None:
        self.status = status
        self._body = body

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> FakeResponse:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        return None


class FakeUrlopen:
    """Stand-in for urlopen that records calls and replays one outcome."""

    def __init__(self, payload: Any = TSDB_STATUS, status: int = 200, error: Exception | None = None):
        self.payload = payload
        self.status = status
        self.error = error
        self.calls: list[tuple[str, float]] = []

    def __call__(self, req, timeout):
        self.calls.append((req.full_url, timeout))
        if self.error is not None:
            raise self.error
        body = self.payload if isinstance(self.payload, bytes) else json.dumps(self.payload).encode()
        return FakeResponse(body, self.status)


@pytest.fixture
def fake_urlopen(monkeypatch: pytest.MonkeyPatch):
    def install(**kwargs: Any) -> FakeUrlopen:
        fake = FakeUrlopen(**kwargs)
        monkeypatch.setattr("dashsense.cardinality.client.urlopen", fake)
        return fake

    return install


class TestParseTsdbStatus:
    """Mapping the TSDB status payload."""

    def test_maps_all_sections(self):
        data = parse_tsdb_status(TSDB_STATUS["data"])
        assert data.head_series_count == 1_500_000
        assert data.series_by_metric == {"http_requests_total": 50_000, "up": 120}
        assert data.values_by_label == {"pod": 3_000, "job": 12}
        assert data.series_by_label_pair == {"job=api": 900}

    def test_malformed_entries_skipped(self):
        data = parse_tsdb_status({
            "headStats": "oops",
            "seriesCountByMetricName": [{"name": "a"}, "junk", {"name": "b", "value": 3}],
            "labelValueCountByLabelName": None,
        })
        assert data.head_series_count == 0
        assert data.series_by_metric == {"b": 3}
        assert data.values_by_label == {}


class TestCardinalityData:
    """Lookups with defaults."""

    def test_estimated_series(self):
        data = CardinalityData(series_by_metric={"up": 10})
        assert data.estimated_series("up", 1000) == 10
        assert data.estimated_series("missing", 1000) == 1000
        assert data.estimated_series(None, 5) == 5

    def test_has_metric_and_label(self):
        data = CardinalityData(series_by_metric={"up": 10}, values_by_label={"pod": 4})
        assert data.has_metric("up")
        assert not data.has_metric(None)
        assert data.has_label("pod")
        assert data.label_cardinality("pod", 0) == 4
        assert data.label_cardinality("job", 7) == 7


class TestCardinalityClient:
    """Fetching, caching and error mapping."""

    def test_fetch(self, fake_urlopen):
        fake = fake_urlopen()
        client = CardinalityClient("http://prometheus:9090/", timeout=2.5)

        data = client.fetch()

        assert data.head_series_count == 1_500_000
        assert fake.calls == [("http://prometheus:9090/api/v1/status/tsdb", 2.5)]

    def test_cached_within_ttl(self, fake_urlopen):
        fake = fake_urlopen()
        client = CardinalityClient("http://prometheus:9090", ttl_seconds=300)

        first = client.fetch()
        second = client.fetch()

        assert first is second
        assert len(fake.calls) == 1

    def test_zero_ttl_refetches(self, fake_urlopen):
        fake = fake_urlopen()
        client = CardinalityClient("http://prometheus:9090", ttl_seconds=0)

        client.fetch()
        client.fetch()

        assert len(fake.calls) == 2

    def test_invalidate(self, fake_urlopen):
        fake = fake_urlopen()
        client = CardinalityClient("http://prometheus:9090")

        client.fetch()
        client.invalidate()
        client.fetch()

        assert len(fake.calls) == 2

    def test_http_error(self, fake_urlopen):
        url = "http://prometheus:9090/api/v1/status/tsdb"
        fake_urlopen(error=HTTPError(url, 503, "Service Unavailable", None, None))
        client = CardinalityClient("http://prometheus:9090")

        with pytest.raises(CardinalityError) as exc_info:
            client.fetch()
        assert exc_info.value.status_code == 503
        assert exc_info.value.url == url

    def test_unreachable(self, fake_urlopen):
        fake_urlopen(error=URLError("connection refused"))
        with pytest.raises(CardinalityError, match="failed") as exc_info:
            CardinalityClient("http://prometheus:9090").fetch()
        assert exc_info.value.status_code is None

    def test_timeout(self, fake_urlopen):
        fake_urlopen(error=TimeoutError("timed out"))
        with pytest.raises(CardinalityError):
            CardinalityClient("http://prometheus:9090").fetch()

    def test_non_200(self, fake_urlopen):
        fake_urlopen(status=204)
        with pytest.raises(CardinalityError) as exc_info:
            CardinalityClient("http://prometheus:9090").fetch()
        assert exc_info.value.status_code == 204

    def test_invalid_json(self, fake_urlopen):
        fake_urlopen(payload=b"<html>")
        with pytest.raises(CardinalityError, match="Decoding"):
            CardinalityClient("http://prometheus:9090").fetch()

    def test_error_status(self, fake_urlopen):
        fake_urlopen(payload={"status": "error", "error": "bad"})
        with pytest.raises(CardinalityError, match="'error'"):
            CardinalityClient("http://prometheus:9090").fetch()

    def test_failed_fetch_not_cached(self, fake_urlopen):
        fake_urlopen(error=URLError("down"))
        client = CardinalityClient("http://prometheus:9090")
        with pytest.raises(CardinalityError):
            client.fetch()

        fake = fake_urlopen()
        assert client.fetch().head_series_count == 1_500_000
        assert len(fake.calls) == 1


class TestSharedClient:
    """One client per endpoint for the process."""

    def test_same_instance(self):
        a = get_cardinality_client("http://prometheus:9090")
        b = get_cardinality_client("http://prometheus:9090")
        assert a is b

    def test_distinct_per_url(self):
        a = get_cardinality_client("http://a:9090")
        b = get_cardinality_client("http://b:9090")
        assert a is not b
        assert b.url == "http://b:9090/api/v1/status/tsdb"
