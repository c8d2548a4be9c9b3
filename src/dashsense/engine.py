"""
AnalysisService - orchestration layer for DashSense.

The single entry point for loading a dashboard, analyzing it and
auto-fixing it. The CLI and the HTTP API are thin adapters around this
service rather than wiring loader, analyzer and fixer themselves.

Design principle: Ports & Adapters
- This is the "application layer" that coordinates domain operations
- It depends only on core abstractions (loader, Analyzer, fixer)
- Delivery mechanisms (CLI, API) stay thin

Usage:
    from dashsense.engine import AnalysisService

    service = AnalysisService()

    # Analyze a file, JSON text, bytes or dict
    report = service.analyze("dashboard.json")

    # Analyze and patch
    result = service.fix("dashboard.json")
    print(result.fix_count, result.dashboard["refresh"])

    # CI gate
    if service.fails_threshold(report, "high"):
        raise SystemExit(1)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from dashsense.analyzer.analyzer import Analyzer
from dashsense.analyzer.models import Report, Severity
from dashsense.analyzer.registry import RuleRegistry
from dashsense.cardinality.client import get_cardinality_client
from dashsense.config import Config, Thresholds, get_config
from dashsense.dashboard.loader import DashboardSource, load_dashboard_with_raw
from dashsense.exceptions import ConfigurationError
from dashsense.fixer import apply_fixes

if TYPE_CHECKING:
    from dashsense.cardinality.models import CardinalityData
    from dashsense.dashboard.config import LoaderConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FixResult:
    """
    Outcome of an auto-fix run.

    ``report`` is the analysis of the dashboard before patching; the
    findings acted on are the auto-fixable ones in it.
    """

    dashboard: dict[str, Any]
    fix_count: int
    report: Report

    @property
    def changed(self) -> bool:
        return self.fix_count > 0


def parse_severity(value: Severity | str | None) -> Severity | None:
    """Severity from its name ("high", "CRITICAL"); None and "none" mean no threshold."""
    if value is None or isinstance(value, Severity):
        return value
    name = value.strip().lower()
    if name in ("", "none"):
        return None
    try:
        return Severity(name)
    except ValueError as e:
        choices = ", ".join(s.value for s in Severity)
        raise ConfigurationError(
            f"Unknown severity {value!r} (expected one of: {choices}, none)",
            config_key="fail_on",
        ) from e


class AnalysisService:
    """
    Orchestration service for DashSense.

    Coordinates loading, analysis and fixing into a single workflow.
    All entry points (CLI, API) should use this service.
    """

    def __init__(
        self,
        config: Config | None = None,
        thresholds: Thresholds | None = None,
        include_rules: set[str] | None = None,
        exclude_rules: set[str] | None = None,
        prometheus_url: str | None = None,
        registry: RuleRegistry | None = None,
        loader_config: LoaderConfig | None = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            config: Configuration instance (if None, uses get_config())
            thresholds: Per-service threshold override (default: config.thresholds)
            include_rules: Only run these rule IDs
            exclude_rules: Skip these rule IDs, on top of rules disabled in config
            prometheus_url: Override config.prometheus_url; "" disables enrichment
            registry: Rule classes to choose from (default: every built-in rule)
            loader_config: Override config.loader, e.g. stricter limits for HTTP

        Raises:
            ConfigurationError: If include/exclude names an unknown rule id
        """
        self._config = config if config is not None else get_config()
        self._registry = registry if registry is not None else RuleRegistry.default()
        self._loader_config = loader_config or self._config.loader

        requested = (include_rules or set()) | (exclude_rules or set())
        unknown = self._registry.unknown_ids(sorted(requested))
        if unknown:
            raise ConfigurationError(
                f"Unknown rule id(s): {', '.join(unknown)}",
                config_key="rules",
            )

        exclude = set(exclude_rules or ()) | self._config.disabled_rules()
        rules = self._registry.instantiate(include=include_rules, exclude=exclude)

        url = self._config.prometheus_url if prometheus_url is None else prometheus_url
        client = None
        if url:
            client = get_cardinality_client(
                url.rstrip("/"),
                timeout=self._config.cardinality_timeout_seconds,
                ttl_seconds=self._config.cardinality_ttl_seconds,
            )

        self._analyzer = Analyzer(
            rules=rules,
            thresholds=thresholds or self._config.thresholds,
            cardinality_client=client,
            prometheus_url=url or "",
            parser_limits=self._config.parser,
        )

    @property
    def analyzer(self) -> Analyzer:
        return self._analyzer

    @property
    def config(self) -> Config:
        return self._config

    def analyze(
        self,
        source: DashboardSource,
        cardinality: CardinalityData | None = None,
    ) -> Report:
        """
        Load and analyze a single dashboard.

        Args:
            source: Path, JSON text, bytes or dict (API envelope accepted)
            cardinality: Pre-fetched TSDB data, skipping the client

        Raises:
            DashboardParseError: If the source is not a loadable dashboard
        """
        dashboard, _ = load_dashboard_with_raw(source, self._loader_config)
        return self._analyzer.analyze(dashboard, cardinality)

    def fix(
        self,
        source: DashboardSource,
        cardinality: CardinalityData | None = None,
    ) -> FixResult:
        """
        Analyze a dashboard and apply every available auto-fix.

        The patched document is the unwrapped dashboard with all unmodeled
        fields preserved. The source itself is never modified.

        Raises:
            DashboardParseError: If the source is not a loadable dashboard
            FixError: If a fix procedure cannot patch the document
        """
        dashboard, raw = load_dashboard_with_raw(source, self._loader_config)
        report = self._analyzer.analyze(dashboard, cardinality)
        patched, fix_count = apply_fixes(raw, report.findings)
        logger.info("Applied %d fix(es) to %r", fix_count, dashboard.title)
        return FixResult(dashboard=patched, fix_count=fix_count, report=report)

    @staticmethod
    def fails_threshold(report: Report, fail_on: Severity | str | None) -> bool:
        """Whether any finding is at or above ``fail_on``; None never fails."""
        threshold = parse_severity(fail_on)
        if threshold is None:
            return False
        return any(f.severity >= threshold for f in report.findings)
