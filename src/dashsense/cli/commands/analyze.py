"""Core analysis commands: analyze, fix, rules."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from dashsense.analyzer.models import Severity
from dashsense.analyzer.registry import RuleRegistry
from dashsense.config import Config, get_config, load_config_from_file
from dashsense.engine import AnalysisService, parse_severity
from dashsense.exceptions import (
    ConfigurationError,
    DashboardParseError,
    FixError,
    RuleError,
)
from dashsense.output.renderers import OutputFormat, render

console = Console()
error_console = Console(stderr=True)

# Exit codes: 0 clean or below --fail-on, 1 threshold hit, 2 usage or input error
EXIT_THRESHOLD = 1
EXIT_ERROR = 2

SEVERITY_STYLES = {
    Severity.CRITICAL: "red bold",
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "blue",
}

ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help="JSON or YAML config file (default: DASHSENSE_* environment)",
        exists=True,
        dir_okay=False,
        resolve_path=True,
    ),
]

PrometheusOption = Annotated[
    Optional[str],
    typer.Option(
        "--prometheus-url",
        help="Prometheus base URL for measured cardinality",
        envvar="DASHSENSE_PROMETHEUS_URL",
    ),
]


def split_ids(value: str | None) -> set[str] | None:
    """'Q1, d5' -> {'Q1', 'D5'}; None or blank -> None."""
    if not value:
        return None
    ids = {part.strip().upper() for part in value.split(",") if part.strip()}
    return ids or None


def _load_config(config_path: Path | None) -> Config:
    if config_path is None:
        return get_config()
    return load_config_from_file(config_path)


def _fail(message: str, detail: str | None = None) -> typer.Exit:
    error_console.print(f"[red]Error:[/red] {message}")
    if detail:
        error_console.print(f"\n[dim]{detail}[/dim]")
    return typer.Exit(code=EXIT_ERROR)


def register(app: typer.Typer) -> None:
    """Register core commands on the given Typer app."""

    @app.command()
    def analyze(
        dashboard_file: Annotated[
            Path,
            typer.Argument(
                help="Path to a Grafana dashboard JSON export",
                exists=True,
                dir_okay=False,
                readable=True,
                resolve_path=True,
            ),
        ],
        output_format: Annotated[
            OutputFormat,
            typer.Option("--format", "-f", help="Output format"),
        ] = OutputFormat.TEXT,
        fail_on: Annotated[
            Optional[str],
            typer.Option(
                "--fail-on",
                help="Exit 1 if any finding is at or above: low, medium, high, critical",
            ),
        ] = None,
        prometheus_url: PrometheusOption = None,
        rules: Annotated[
            Optional[str],
            typer.Option("--rules", help="Only run these rule ids (comma-separated)"),
        ] = None,
        exclude: Annotated[
            Optional[str],
            typer.Option("--exclude", help="Skip these rule ids (comma-separated)"),
        ] = None,
        config_path: ConfigOption = None,
    ) -> None:
        """
        Analyze a Grafana dashboard for query performance issues.

        Examples:

            $ dashsense analyze node-exporter.json
            $ dashsense analyze api.json --format json --fail-on high
            $ dashsense analyze api.json --prometheus-url http://prometheus:9090
        """
        try:
            threshold = parse_severity(fail_on)
            service = AnalysisService(
                config=_load_config(config_path),
                include_rules=split_ids(rules),
                exclude_rules=split_ids(exclude),
                prometheus_url=prometheus_url,
            )
            report = service.analyze(dashboard_file)
        except ConfigurationError as e:
            raise _fail(e.message) from e
        except DashboardParseError as e:
            raise _fail(e.message, e.detail) from e
        except RuleError as e:
            raise _fail(e.message) from e

        typer.echo(render(report, format=output_format))

        if service.fails_threshold(report, threshold):
            raise typer.Exit(code=EXIT_THRESHOLD)

    @app.command()
    def fix(
        dashboard_file: Annotated[
            Path,
            typer.Argument(
                help="Path to a Grafana dashboard JSON export",
                exists=True,
                dir_okay=False,
                readable=True,
                resolve_path=True,
            ),
        ],
        output: Annotated[
            Optional[Path],
            typer.Option(
                "--output",
                "-o",
                help="Write the patched dashboard here instead of stdout",
                dir_okay=False,
                resolve_path=True,
            ),
        ] = None,
        prometheus_url: PrometheusOption = None,
        config_path: ConfigOption = None,
    ) -> None:
        """
        Apply auto-fixes and write the patched dashboard JSON.

        Only structural, idempotent fixes are applied (Q3, Q7, D5, D6, D7).
        Fields DashSense does not model are preserved.

        Examples:

            $ dashsense fix api.json > api.fixed.json
            $ dashsense fix api.json --output api.json
        """
        try:
            service = AnalysisService(
                config=_load_config(config_path),
                prometheus_url=prometheus_url,
            )
            result = service.fix(dashboard_file)
        except ConfigurationError as e:
            raise _fail(e.message) from e
        except DashboardParseError as e:
            raise _fail(e.message, e.detail) from e
        except (FixError, RuleError) as e:
            raise _fail(e.message) from e

        if not result.changed:
            error_console.print("No auto-fixable issues found.")
            return

        patched = json.dumps(result.dashboard, indent=2, ensure_ascii=False) + "\n"

        if output is None:
            typer.echo(patched, nl=False)
            return

        try:
            output.write_text(patched, encoding="utf-8")
        except OSError as e:
            raise _fail(f"Cannot write {output}", str(e)) from e
        error_console.print(
            f"Applied {result.fix_count} fix(es), wrote patched dashboard to {output}"
        )

    @app.command()
    def rules() -> None:
        """List all available detection rules."""
        registry = RuleRegistry.default()
        all_rules = registry.all()

        table = Table()
        table.add_column("Rule ID", style="cyan")
        table.add_column("Severity")
        table.add_column("Fix")
        table.add_column("Description")

        for rule_cls in all_rules:
            style = SEVERITY_STYLES.get(rule_cls.severity, "")
            severity = rule_cls.severity.value.upper()
            table.add_row(
                rule_cls.rule_id,
                f"[{style}]{severity}[/{style}]" if style else severity,
                "auto" if rule_cls.auto_fixable else "",
                rule_cls.description,
            )

        console.print(table)
        console.print(f"\n[dim]{len(all_rules)} rules available[/dim]")
