"""
Loader for Grafana dashboard JSON.

This module handles:
- Loading dashboard JSON from files, strings, bytes or dicts
- Unwrapping the {"dashboard": {...}, "meta": {...}} envelope returned by
  the Grafana HTTP API
- Converting to the typed DashboardModel
- Enforcing resource limits

The raw dict is returned alongside the model by load_dashboard_with_raw()
so the auto-fixer can patch the document without losing unmodeled fields.

Error handling philosophy: fail fast with clear messages. If the input is
not a dashboard, say exactly what is wrong rather than analyzing garbage.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from dashsense.dashboard.config import DEFAULT_CONFIG, LoaderConfig
from dashsense.dashboard.models import DashboardModel
from dashsense.exceptions import DashboardParseError

DashboardSource = str | bytes | Path | dict[str, Any]


def load_dashboard(
    source: DashboardSource,
    config: LoaderConfig | None = None,
) -> DashboardModel:
    """
    Load a Grafana dashboard into the typed model.

    Accepts multiple input formats for convenience:
    - File path (Path, or str that does not start with "{"): reads the file
    - JSON string or bytes: parses it
    - Dict: validates it directly

    Args:
        source: Dashboard JSON in any of the supported formats
        config: Loader limits. If None, uses DEFAULT_CONFIG.

    Returns:
        DashboardModel: validated, read-only view of the dashboard

    Raises:
        DashboardParseError: If input cannot be read, decoded, validated,
            or exceeds limits

    Example:
        >>> dashboard = load_dashboard("node-exporter.json")
        >>> dashboard = load_dashboard('{"title": "API", "panels": []}')
    """
    dashboard, _ = load_dashboard_with_raw(source, config)
    return dashboard


def load_dashboard_with_raw(
    source: DashboardSource,
    config: LoaderConfig | None = None,
) -> tuple[DashboardModel, dict[str, Any]]:
    """Like load_dashboard(), also returning the unwrapped raw dict."""
    config = config or DEFAULT_CONFIG

    _check_size(source, config)
    data = unwrap_envelope(load_raw(source))
    dashboard = _validate_dashboard(data)
    _check_panel_count(dashboard, config)

    return dashboard, data


def load_raw(source: DashboardSource) -> dict[str, Any]:
    """
    Load source into a plain dict without validating it.

    Handles file paths, JSON strings, bytes, and already-parsed data.
    """
    if isinstance(source, dict):
        return source

    if isinstance(source, Path):
        return _load_json_file(source)

    if isinstance(source, bytes):
        try:
            text = source.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DashboardParseError(
                "Dashboard is not valid UTF-8",
                detail=str(e),
                source="json_decode",
            ) from e
        return _parse_json_string(text)

    if isinstance(source, str):
        stripped = source.strip()
        if stripped.startswith(("{", "[")):
            return _parse_json_string(stripped)
        return _load_json_file(Path(source))

    raise DashboardParseError(
        f"Unsupported source type: {type(source).__name__}",
        detail="Expected file path, JSON string, bytes, or dict",
        source="type_check",
    )


def unwrap_envelope(data: dict[str, Any]) -> dict[str, Any]:
    """
    Unwrap the Grafana API envelope when present.

    GET /api/dashboards/uid/<uid> returns {"dashboard": {...}, "meta": {...}};
    exported files contain the dashboard object directly.
    """
    inner = data.get("dashboard")
    if isinstance(inner, dict) and "panels" not in data:
        return inner
    return data


def _load_json_file(path: Path) -> dict[str, Any]:
    """Load and parse a JSON file."""
    if not path.exists():
        raise DashboardParseError(
            f"File not found: {path}",
            source="file_read",
        )

    if not path.is_file():
        raise DashboardParseError(
            f"Path is not a file: {path}",
            source="file_read",
        )

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DashboardParseError(
            f"Cannot read file: {path}",
            detail=str(e),
            source="file_read",
        ) from e

    if not content.strip():
        raise DashboardParseError(
            f"File is empty: {path}",
            source="file_read",
        )

    return _parse_json_string(content)


def _parse_json_string(content: str) -> dict[str, Any]:
    """Parse a JSON string that must hold an object."""
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise DashboardParseError(
            "Invalid JSON format",
            detail=f"Line {e.lineno}, column {e.colno}: {e.msg}",
            source="json_decode",
        ) from e

    if not isinstance(data, dict):
        raise DashboardParseError(
            f"Expected a JSON object, got {type(data).__name__}",
            detail="A Grafana dashboard export is a single JSON object",
            source="structure",
        )

    return data


def _validate_dashboard(data: dict[str, Any]) -> DashboardModel:
    """
    Validate the data against the dashboard model.

    Converts pydantic validation errors into user-friendly
    DashboardParseErrors.
    """
    if not any(key in data for key in ("panels", "title", "uid", "templating")):
        raise DashboardParseError(
            "This doesn't look like a Grafana dashboard",
            detail="Expected at least one of 'panels', 'title', 'uid' or 'templating'",
            source="structure",
        )

    try:
        return DashboardModel.model_validate(data)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            loc = " -> ".join(str(x) for x in error["loc"])
            errors.append(f"  {loc}: {error['msg']}")

        raise DashboardParseError(
            "Dashboard validation failed",
            detail="\n".join(errors),
            source="validation",
        ) from e


def _check_size(source: DashboardSource, config: LoaderConfig) -> None:
    """Check input size before loading into memory."""
    size_bytes: int | None = None

    if isinstance(source, bytes):
        size_bytes = len(source)
    elif isinstance(source, Path):
        if source.is_file():
            size_bytes = source.stat().st_size
    elif isinstance(source, str):
        if source.strip().startswith(("{", "[")):
            size_bytes = len(source.encode("utf-8"))
        else:
            path = Path(source)
            if path.is_file():
                size_bytes = path.stat().st_size

    if size_bytes is None:
        return

    size_mb = size_bytes / (1024 * 1024)
    if size_mb > config.max_file_size_mb:
        raise DashboardParseError(
            f"Dashboard too large: {size_mb:.1f}MB (max {config.max_file_size_mb}MB)",
            detail="Increase max_file_size_mb in the loader config for very large dashboards",
            source="resource_limit",
        )


def _check_panel_count(dashboard: DashboardModel, config: LoaderConfig) -> None:
    """Check total panel count after validation."""
    count = len(dashboard.all_panels())
    if count > config.max_panels:
        raise DashboardParseError(
            f"Dashboard has too many panels: {count:,} (max {config.max_panels:,})",
            source="resource_limit",
        )
