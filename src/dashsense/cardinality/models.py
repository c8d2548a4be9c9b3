"""
Cardinality data from the Prometheus TSDB status API.

When present it replaces heuristic series counts with measured ones and
raises confidence on findings that depend on them. Every lookup takes a
default so callers never branch on missing metrics.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_HEURISTIC_SERIES = 1000


class CardinalityData(BaseModel):
    """Measured series and label counts for one Prometheus instance."""

    model_config = ConfigDict(frozen=True)

    series_by_metric: dict[str, int] = Field(
        default_factory=dict,
        description="Active series per metric name",
    )
    values_by_label: dict[str, int] = Field(
        default_factory=dict,
        description="Distinct values per label name",
    )
    series_by_label_pair: dict[str, int] = Field(
        default_factory=dict,
        description="Active series per label=value pair",
    )
    head_series_count: int = Field(
        default=0,
        description="Total active head series",
    )

    def estimated_series(self, metric_name: str | None, default: int = DEFAULT_HEURISTIC_SERIES) -> int:
        """Measured series count for a metric, or ``default`` when unknown."""
        if metric_name is None:
            return default
        return self.series_by_metric.get(metric_name, default)

    def has_metric(self, metric_name: str | None) -> bool:
        return metric_name is not None and metric_name in self.series_by_metric

    def label_cardinality(self, label_name: str, default: int) -> int:
        """Distinct value count for a label, or ``default`` when unknown."""
        return self.values_by_label.get(label_name, default)

    def has_label(self, label_name: str) -> bool:
        return label_name in self.values_by_label
