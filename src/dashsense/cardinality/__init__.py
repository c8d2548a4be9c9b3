"""Live cardinality enrichment from the Prometheus TSDB status API."""

from dashsense.cardinality.client import (
    CardinalityClient,
    get_cardinality_client,
    parse_tsdb_status,
)
from dashsense.cardinality.models import DEFAULT_HEURISTIC_SERIES, CardinalityData

__all__ = [
    "DEFAULT_HEURISTIC_SERIES",
    "CardinalityClient",
    "CardinalityData",
    "get_cardinality_client",
    "parse_tsdb_status",
]
