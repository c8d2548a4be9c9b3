"""
Configuration system for DashSense.

Implements 12-factor config principles:
- Environment variables as primary config source
- Optional JSON/YAML config file for local development
- Every rule threshold is a named, overridable value
- Per-rule enable/disable switches

Usage:
    from dashsense.config import get_config, Thresholds

    # Load from environment (default)
    config = get_config()

    # Override a threshold for one run
    thresholds = config.thresholds.model_copy(update={"max_visible_panels": 40})

    # Check if a rule is enabled
    if config.is_rule_enabled("Q7"):
        ...
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from dashsense.dashboard.config import LoaderConfig
from dashsense.exceptions import ConfigurationError
from dashsense.promql.config import ParserLimits

logger = logging.getLogger(__name__)

ENV_PREFIX = "DASHSENSE_"

DEFAULT_HIGH_CARDINALITY_LABELS: tuple[str, ...] = (
    "pod",
    "container",
    "instance",
    "pod_name",
    "container_name",
    "id",
    "uid",
)


class Thresholds(BaseModel):
    """
    Named constants every rule, the cost estimator and the scorer read.

    Defaults match the documented rule catalog. Pass a modified copy to
    the analyzer to change them for a single run.
    """

    model_config = ConfigDict(frozen=True)

    # Structural rules
    max_visible_panels: int = Field(default=25, ge=0, description="D1: visible panel limit")
    min_refresh_seconds: float = Field(default=30.0, ge=0, description="D5: refresh floor")
    max_time_range_seconds: float = Field(
        default=24 * 3600.0, gt=0, description="D6: default time window ceiling"
    )
    max_variable_product: int = Field(
        default=50, ge=0, description="D3: multi-select cross-product limit"
    )
    variable_product_cap: int = Field(
        default=1_000_000, gt=0, description="D3: cap applied while multiplying"
    )
    default_variable_values: int = Field(
        default=100, gt=0, description="D3: assumed values per unmeasured variable"
    )
    duplicate_panel_limit: int = Field(
        default=2, ge=1, description="Q9/D8: panels allowed to share one query"
    )
    max_datasources: int = Field(default=2, ge=0, description="D9: distinct datasource limit")
    collapsed_rows_min_panels: int = Field(
        default=5, ge=0, description="D10: panel count that calls for collapsed rows"
    )

    # Expression rules
    max_rate_range_seconds: float = Field(
        default=600.0, gt=0, description="Q6: longest acceptable rate window"
    )
    max_grouping_labels: int = Field(default=3, ge=0, description="Q4: grouping label limit")
    high_cardinality_labels: tuple[str, ...] = Field(
        default=DEFAULT_HIGH_CARDINALITY_LABELS,
        description="Q4: label names known to explode series counts",
    )
    subquery_min_step_seconds: float = Field(
        default=60.0, gt=0, description="Q8: step below which a long subquery is too fine"
    )
    subquery_long_range_seconds: float = Field(
        default=3600.0, gt=0, description="Q8: range above which a fine step is flagged"
    )
    subquery_max_ratio: int = Field(
        default=360, gt=0, description="Q8: maximum range/step evaluation count"
    )

    # Cost, enrichment and backend rules
    default_series: int = Field(
        default=1000, gt=0, description="Series assumed for an unmeasured metric"
    )
    cost_step_seconds: float = Field(
        default=15.0, gt=0, description="Ambient query step for cost estimation"
    )
    head_series_limit: int = Field(
        default=1_000_000, gt=0, description="B6: active head series limit"
    )


class RuleSettings(BaseModel):
    """Configuration for a single rule."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(default=True, description="Whether the rule is enabled")


class Config(BaseModel):
    """
    DashSense configuration.

    Loaded from environment variables and an optional config file.
    """

    model_config = ConfigDict(frozen=True)

    thresholds: Thresholds = Field(
        default_factory=Thresholds,
        description="Rule, cost and scoring thresholds",
    )

    rules: dict[str, RuleSettings] = Field(
        default_factory=dict,
        description="Per-rule configurations keyed by rule id",
    )

    parser: ParserLimits = Field(
        default_factory=ParserLimits,
        description="Per-expression parse limits",
    )

    loader: LoaderConfig = Field(
        default_factory=LoaderConfig,
        description="Dashboard input limits",
    )

    # Live enrichment
    prometheus_url: str | None = Field(
        default=None,
        description="Prometheus base URL for TSDB cardinality enrichment",
    )
    cardinality_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for the TSDB status request",
    )
    cardinality_ttl_seconds: float = Field(
        default=300.0,
        ge=0,
        description="How long fetched cardinality data stays fresh",
    )

    log_level: str = Field(
        default="WARNING",
        description="Root log level used by the CLI and server",
    )

    def is_rule_enabled(self, rule_id: str) -> bool:
        """Check if a rule is enabled."""
        if rule_id in self.rules:
            return self.rules[rule_id].enabled
        return True

    def disabled_rules(self) -> set[str]:
        """Rule ids switched off in this configuration."""
        return {rule_id for rule_id, settings in self.rules.items() if not settings.enabled}

    def config_hash(self) -> str:
        """Short hash of the analysis-affecting settings."""
        config_dict = self.model_dump(exclude={"log_level"})
        config_json = json.dumps(config_dict, sort_keys=True, default=str)
        return hashlib.sha256(config_json.encode()).hexdigest()[:16]


def _parse_env_bool(value: str | None, default: bool = False) -> bool:
    """Parse boolean from environment variable."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_env_int(value: str | None, default: int) -> int:
    """Parse integer from environment variable."""
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Ignoring non-integer value %r", value)
        return default


def _parse_env_float(value: str | None, default: float) -> float:
    """Parse float from environment variable."""
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning("Ignoring non-numeric value %r", value)
        return default


def _thresholds_from_env() -> Thresholds:
    """Read DASHSENSE_<THRESHOLD> overrides for every Thresholds field."""
    defaults = Thresholds()
    overrides: dict[str, Any] = {}

    for name in Thresholds.model_fields:
        raw = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is None:
            continue
        current = getattr(defaults, name)
        annotation = Thresholds.model_fields[name].annotation
        if annotation is int:
            overrides[name] = _parse_env_int(raw, current)
        elif annotation is float:
            overrides[name] = _parse_env_float(raw, current)
        else:
            overrides[name] = tuple(part.strip() for part in raw.split(",") if part.strip())

    if not overrides:
        return defaults
    try:
        return Thresholds(**{**defaults.model_dump(), **overrides})
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid threshold in environment: {e}",
            config_key=f"{ENV_PREFIX}{str(e.errors()[0]['loc'][0]).upper()}",
        ) from e


def load_config_from_env() -> Config:
    """
    Load configuration from environment variables.

    Environment variable naming convention:
    - DASHSENSE_<THRESHOLD> for any Thresholds field
    - DASHSENSE_RULE_<RULE_ID>_ENABLED for rule switches
    - DASHSENSE_PROMETHEUS_URL, DASHSENSE_CARDINALITY_TIMEOUT_SECONDS,
      DASHSENSE_CARDINALITY_TTL_SECONDS, DASHSENSE_PARSE_TIMEOUT_SECONDS,
      DASHSENSE_LOG_LEVEL

    Examples:
    - DASHSENSE_MAX_VISIBLE_PANELS=40
    - DASHSENSE_HIGH_CARDINALITY_LABELS=pod,instance,trace_id
    - DASHSENSE_RULE_Q7_ENABLED=false
    """
    config_kwargs: dict[str, Any] = {
        "thresholds": _thresholds_from_env(),
        "prometheus_url": os.environ.get(f"{ENV_PREFIX}PROMETHEUS_URL") or None,
        "cardinality_timeout_seconds": _parse_env_float(
            os.environ.get(f"{ENV_PREFIX}CARDINALITY_TIMEOUT_SECONDS"), 10.0
        ),
        "cardinality_ttl_seconds": _parse_env_float(
            os.environ.get(f"{ENV_PREFIX}CARDINALITY_TTL_SECONDS"), 300.0
        ),
        "parser": ParserLimits(
            timeout_seconds=_parse_env_float(
                os.environ.get(f"{ENV_PREFIX}PARSE_TIMEOUT_SECONDS"), 2.0
            ),
        ),
        "log_level": os.environ.get(f"{ENV_PREFIX}LOG_LEVEL", "WARNING").upper(),
    }

    rules: dict[str, RuleSettings] = {}
    rule_prefix = f"{ENV_PREFIX}RULE_"

    for key, value in os.environ.items():
        if not key.startswith(rule_prefix) or not key.endswith("_ENABLED"):
            continue
        rule_id = key[len(rule_prefix):-len("_ENABLED")]
        if rule_id:
            rules[rule_id] = RuleSettings(enabled=_parse_env_bool(value, True))

    config_kwargs["rules"] = rules

    return Config(**config_kwargs)


def load_config_from_file(path: Path) -> Config:
    """
    Load configuration from a JSON or YAML file.

    A missing file falls back to environment variables; a file that exists
    but does not validate raises ConfigurationError.
    """
    if not path.exists():
        logger.warning("Config file not found: %s, using environment", path)
        return load_config_from_env()

    try:
        with open(path, encoding="utf-8") as f:
            if path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Cannot read config file {path}: {e}", config_key=str(path)
        ) from e

    try:
        return Config(**(data or {}))
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid config file {path}: {e}", config_key=str(path)
        ) from e


@lru_cache(maxsize=1)
def get_config() -> Config:
    """
    Get the process configuration.

    Loads from:
    1. DASHSENSE_CONFIG_FILE environment variable (if set)
    2. Environment variables (default)

    Result is cached for the lifetime of the process.
    """
    config_file = os.environ.get(f"{ENV_PREFIX}CONFIG_FILE")

    if config_file:
        return load_config_from_file(Path(config_file))

    return load_config_from_env()


def reset_config() -> None:
    """Reset the cached configuration (mainly for testing)."""
    get_config.cache_clear()
