"""
Pydantic models for Grafana dashboard JSON.

These models are the typed, read-only view of a dashboard used by the
analyzer. The structure is:
- DashboardModel: top-level settings, panels and templating
- PanelModel: a panel, possibly a row holding nested panels
- TargetModel: one query of a panel
- VariableModel: one templating variable

Grafana uses camelCase keys, which we map to snake_case via aliases.
Fields the analyzer does not need are ignored here; the auto-fixer works
on the raw JSON so nothing is lost on a round trip.

Reference: https://grafana.com/docs/grafana/latest/dashboards/build-dashboards/view-dashboard-json-model/
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

ROW_PANEL_TYPE = "row"

# Panel types that render time series and honour maxDataPoints
TIME_SERIES_PANEL_TYPES = frozenset({"timeseries", "graph", "barchart", "heatmap"})


class DatasourceRef(BaseModel):
    """
    Reference to a datasource.

    Older dashboards store the datasource as a bare name string; it is
    kept as the uid so distinct-source counting still works.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    type: str = ""
    uid: str = ""

    @field_validator("type", "uid", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def is_variable(self) -> bool:
        """Whether the uid is a templating reference like ``$datasource``."""
        return self.uid.startswith("$")


def coerce_max_data_points(value: Any) -> int | None:
    """maxDataPoints as an int; None when absent or not a number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


def _coerce_datasource(value: Any) -> Any:
    if isinstance(value, str):
        return {"uid": value}
    return value


class TargetModel(BaseModel):
    """A single query within a panel."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    expr: str = Field(default="", description="PromQL expression as written")
    legend_format: str = Field(default="", alias="legendFormat")
    ref_id: str = Field(default="", alias="refId")
    datasource: DatasourceRef | None = None

    @field_validator("expr", "legend_format", "ref_id", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("datasource", mode="before")
    @classmethod
    def _datasource(cls, value: Any) -> Any:
        return _coerce_datasource(value)


class PanelModel(BaseModel):
    """
    A dashboard panel.

    Rows carry their children in ``panels`` when collapsed; those nested
    panels do not issue queries until the row is expanded.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    id: int = 0
    title: str = ""
    type: str = ""
    collapsed: bool = False
    repeat: str = ""
    max_data_points: int | None = Field(default=None, alias="maxDataPoints")
    interval: str = ""
    targets: list[TargetModel] = Field(default_factory=list)
    datasource: DatasourceRef | None = None
    panels: list[PanelModel] = Field(
        default_factory=list,
        description="Nested panels of a collapsed row",
    )

    @field_validator("title", "type", "repeat", "interval", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("targets", "panels", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("collapsed", mode="before")
    @classmethod
    def _none_to_false(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("id", mode="before")
    @classmethod
    def _none_to_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("max_data_points", mode="before")
    @classmethod
    def _max_data_points(cls, value: Any) -> Any:
        return coerce_max_data_points(value)

    @field_validator("datasource", mode="before")
    @classmethod
    def _datasource(cls, value: Any) -> Any:
        return _coerce_datasource(value)

    @property
    def is_row(self) -> bool:
        return self.type == ROW_PANEL_TYPE

    @property
    def expressions(self) -> list[str]:
        """Non-empty target expressions, in target order."""
        return [t.expr for t in self.targets if t.expr]

    @property
    def display_title(self) -> str:
        return self.title or f"panel {self.id}"


class VariableOption(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    text: Any = None
    value: Any = None
    selected: bool = False


class VariableModel(BaseModel):
    """A templating variable."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    name: str = ""
    type: str = ""
    label: str = ""
    query: Any = Field(default=None, description="String, or an object with a 'query' key")
    include_all: bool = Field(default=False, alias="includeAll")
    multi: bool = False
    all_value: str = Field(default="", alias="allValue")
    regex: str = ""
    datasource: DatasourceRef | None = None
    options: list[VariableOption] = Field(default_factory=list)

    @field_validator("name", "type", "label", "all_value", "regex", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("include_all", "multi", mode="before")
    @classmethod
    def _none_to_false(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("options", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("datasource", mode="before")
    @classmethod
    def _datasource(cls, value: Any) -> Any:
        return _coerce_datasource(value)

    def query_string(self) -> str:
        """The backing query as text, whichever shape Grafana stored it in."""
        if isinstance(self.query, str):
            return self.query
        if isinstance(self.query, dict):
            inner = self.query.get("query")
            if isinstance(inner, str):
                return inner
        return ""


class TimeRange(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    from_: str = Field(default="", alias="from")
    to: str = ""


class Templating(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    variables: list[VariableModel] = Field(default_factory=list, alias="list")

    @field_validator("variables", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value


class DashboardModel(BaseModel):
    """
    Typed view of one Grafana dashboard.

    The panel helpers encode which panels count for which question:
    all_panels() for totals, visible_panels() for what loads immediately,
    panels_with_targets() for what the expression rules inspect.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    uid: str = ""
    title: str = ""
    refresh: str = ""
    schema_version: int = Field(default=0, alias="schemaVersion")
    time: TimeRange = Field(default_factory=TimeRange)
    panels: list[PanelModel] = Field(default_factory=list)
    templating: Templating = Field(default_factory=Templating)

    @field_validator("uid", "title", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("schema_version", mode="before")
    @classmethod
    def _none_to_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("refresh", mode="before")
    @classmethod
    def _refresh(cls, value: Any) -> Any:
        # Grafana stores "refresh": false when auto-refresh is off
        if value is None or value is False:
            return ""
        return value

    @field_validator("panels", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("time", "templating", mode="before")
    @classmethod
    def _none_to_default(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def variables(self) -> list[VariableModel]:
        return self.templating.variables

    def variable(self, name: str) -> VariableModel | None:
        """Look up a variable by name; absence is not an error."""
        for var in self.templating.variables:
            if var.name == name:
                return var
        return None

    def all_panels(self) -> list[PanelModel]:
        """Top-level panels followed by each one's nested panels. Rows included."""
        result: list[PanelModel] = []
        for panel in self.panels:
            result.append(panel)
            result.extend(panel.panels)
        return result

    def visible_panels(self) -> list[PanelModel]:
        """Top-level, non-row panels: the ones that query on load."""
        return [p for p in self.panels if not p.is_row]

    def panels_with_targets(self) -> list[PanelModel]:
        """Non-row panels (nested included) with at least one non-empty expression."""
        return [p for p in self.all_panels() if not p.is_row and p.expressions]

    def all_target_exprs(self) -> list[str]:
        """Unique non-empty expressions in first-seen order."""
        seen: dict[str, None] = {}
        for panel in self.all_panels():
            for expr in panel.expressions:
                seen.setdefault(expr, None)
        return list(seen)

    def all_datasource_uids(self) -> list[str]:
        """Distinct panel and target datasource uids, skipping ``$`` references."""
        seen: dict[str, None] = {}
        for panel in self.all_panels():
            refs = [panel.datasource] + [t.datasource for t in panel.targets]
            for ref in refs:
                if ref is None or not ref.uid or ref.is_variable:
                    continue
                seen.setdefault(ref.uid, None)
        return list(seen)

    @property
    def total_targets(self) -> int:
        return sum(len(p.targets) for p in self.all_panels())
