"""
Client for the Prometheus TSDB status endpoint.

GET <prometheus>/api/v1/status/tsdb returns head statistics and the top
series counts by metric, label and label pair. One fetch serves every
rule in a run; the result is cached for a freshness window so repeated
runs (the HTTP server, watch loops) do not hammer Prometheus.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from functools import lru_cache
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from dashsense.cardinality.models import CardinalityData
from dashsense.exceptions import CardinalityError

logger = logging.getLogger(__name__)

TSDB_STATUS_PATH = "/api/v1/status/tsdb"


class CardinalityClient:
    """
    Fetches and caches CardinalityData.

    The lock guards only the cached value and its timestamp. Concurrent
    callers may each fetch while the cache is stale; whichever finishes
    last wins.

    Example:
        client = CardinalityClient("http://prometheus:9090", timeout=5.0)
        data = client.fetch()
        data.estimated_series("http_requests_total", 1000)
    """

    DEFAULT_TIMEOUT: float = 10.0
    DEFAULT_TTL: float = 300.0

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        ttl_seconds: float = DEFAULT_TTL,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.ttl_seconds = ttl_seconds

        self._lock = threading.Lock()
        self._cached: CardinalityData | None = None
        self._cached_at = 0.0

    @property
    def url(self) -> str:
        return self.base_url + TSDB_STATUS_PATH

    def fetch(self) -> CardinalityData:
        """
        Return cardinality data, from cache when fresh.

        Raises:
            CardinalityError: If the endpoint is unreachable, returns a
                non-200 status, or returns an unusable body.
        """
        with self._lock:
            if self._cached is not None and time.monotonic() - self._cached_at < self.ttl_seconds:
                return self._cached

        data = self._fetch_from_api()

        with self._lock:
            self._cached = data
            self._cached_at = time.monotonic()

        return data

    def invalidate(self) -> None:
        """Drop the cached value."""
        with self._lock:
            self._cached = None
            self._cached_at = 0.0

    def _fetch_from_api(self) -> CardinalityData:
        url = self.url
        req = Request(url, headers={"Accept": "application/json"}, method="GET")

        try:
            with urlopen(req, timeout=self.timeout) as resp:
                status = resp.status
                body = resp.read()
        except HTTPError as e:
            raise CardinalityError(
                f"TSDB status API returned {e.code} from {url}",
                url=url,
                status_code=e.code,
            ) from e
        except (URLError, OSError) as e:
            raise CardinalityError(
                f"Fetching TSDB status from {url} failed: {e}", url=url
            ) from e

        if status != 200:
            raise CardinalityError(
                f"TSDB status API returned {status} from {url}",
                url=url,
                status_code=status,
            )

        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CardinalityError(
                f"Decoding TSDB status response failed: {e}", url=url
            ) from e

        if not isinstance(payload, dict) or payload.get("status") != "success":
            status_field = payload.get("status") if isinstance(payload, dict) else None
            raise CardinalityError(
                f"TSDB status API returned status {status_field!r}", url=url
            )

        data = parse_tsdb_status(payload.get("data") or {})
        logger.debug(
            "Fetched TSDB status from %s: %d head series, %d metrics",
            url,
            data.head_series_count,
            len(data.series_by_metric),
        )
        return data


def _pairs(items: Any) -> dict[str, int]:
    result: dict[str, int] = {}
    if not isinstance(items, list):
        return result
    for item in items:
        if not isinstance(item, dict):
            continue
        name = item.get("name")
        value = item.get("value")
        if isinstance(name, str) and isinstance(value, (int, float)):
            result[name] = int(value)
    return result


def parse_tsdb_status(data: dict[str, Any]) -> CardinalityData:
    """Map the ``data`` object of a TSDB status response."""
    head_stats = data.get("headStats") or {}
    num_series = head_stats.get("numSeries", 0) if isinstance(head_stats, dict) else 0

    return CardinalityData(
        series_by_metric=_pairs(data.get("seriesCountByMetricName")),
        values_by_label=_pairs(data.get("labelValueCountByLabelName")),
        series_by_label_pair=_pairs(data.get("seriesCountByLabelValuePair")),
        head_series_count=int(num_series) if isinstance(num_series, (int, float)) else 0,
    )


@lru_cache(maxsize=8)
def get_cardinality_client(
    base_url: str,
    timeout: float = CardinalityClient.DEFAULT_TIMEOUT,
    ttl_seconds: float = CardinalityClient.DEFAULT_TTL,
) -> CardinalityClient:
    """
    Process-wide client per endpoint, so its cache outlives a single run.

    Cleared with ``get_cardinality_client.cache_clear()`` in tests.
    """
    return CardinalityClient(base_url, timeout=timeout, ttl_seconds=ttl_seconds)
