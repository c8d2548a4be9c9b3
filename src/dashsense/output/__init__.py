"""
Output module - Separates rendering from analysis.

Design principle: Presentation ≠ domain logic.

Provides multiple output formats:
- render_text: Terminal output for the CLI
- render_json: Stable JSON schema for the API and CI

Usage:
    from dashsense.output import render_text, render_json

    report = analyzer.analyze(dashboard)

    # CLI output
    print(render_text(report))

    # API response
    return render_json(report)
"""

from dashsense.output.renderers import (
    OutputFormat,
    render,
    render_json,
    render_text,
    report_to_dict,
    score_bar,
)
from dashsense.output.schema import (
    FindingSchema,
    FixResponseSchema,
    ReportSchema,
    get_json_schema,
)

__all__ = [
    "OutputFormat",
    "render",
    "render_text",
    "render_json",
    "report_to_dict",
    "score_bar",
    "FindingSchema",
    "FixResponseSchema",
    "ReportSchema",
    "get_json_schema",
]
