"""Grafana dashboard document model and loader."""

from dashsense.dashboard.config import DEFAULT_CONFIG, STRICT_CONFIG, LoaderConfig
from dashsense.dashboard.loader import (
    load_dashboard,
    load_dashboard_with_raw,
    load_raw,
    unwrap_envelope,
)
from dashsense.dashboard.models import (
    ROW_PANEL_TYPE,
    TIME_SERIES_PANEL_TYPES,
    DashboardModel,
    DatasourceRef,
    PanelModel,
    TargetModel,
    VariableModel,
)
from dashsense.exceptions import DashboardParseError

__all__ = [
    "DEFAULT_CONFIG",
    "ROW_PANEL_TYPE",
    "STRICT_CONFIG",
    "TIME_SERIES_PANEL_TYPES",
    "DashboardModel",
    "DashboardParseError",
    "DatasourceRef",
    "LoaderConfig",
    "PanelModel",
    "TargetModel",
    "VariableModel",
    "load_dashboard",
    "load_dashboard_with_raw",
    "load_raw",
    "unwrap_envelope",
]
