"""
Package-level exception hierarchy for DashSense.

All exceptions inherit from DashSenseError, enabling:
- Catching all DashSense errors with a single except clause
- Rich context fields for debugging (rule_id, config_key, source, etc.)
- Structured serialization via to_dict() for JSON error responses

Hierarchy:
    DashSenseError
    ├── AnalyzerError          – Errors during analysis orchestration
    │   ├── RuleError          – A specific rule raised during execution
    │   └── ConfigurationError – Invalid analyzer configuration
    ├── DashboardParseError    – Dashboard JSON could not be loaded
    ├── ExpressionParseError   – A PromQL expression could not be parsed
    ├── CardinalityError       – TSDB status endpoint unusable
    └── FixError               – Auto-fix could not produce a document
"""

from __future__ import annotations

from typing import Any


class DashSenseError(Exception):
    """
    Base exception for all DashSense errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON error responses."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
        }


# ── Analysis Errors ──────────────────────────────────────────────────────


class AnalyzerError(DashSenseError):
    """Errors during analysis orchestration."""
    pass


class RuleError(AnalyzerError):
    """
    Error during rule execution.

    Rules are pure predicates and must not raise; when one does it is a
    defect in the rule, so the engine wraps and re-raises it with the
    rule identity attached.

    Attributes:
        rule_id: The ID of the rule that failed.
        rule_version: Version of the rule.
        original_error: The underlying exception.
    """

    def __init__(
        self,
        rule_id: str,
        rule_version: str,
        original_error: Exception,
    ) -> None:
        self.rule_id = rule_id
        self.rule_version = rule_version
        self.original_error = original_error

        message = (
            f"Rule '{rule_id}' v{rule_version} failed: "
            f"{original_error.__class__.__name__}: {original_error}"
        )
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output / logging."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "rule_id": self.rule_id,
            "rule_version": self.rule_version,
            "original_error_type": self.original_error.__class__.__name__,
            "original_error_message": str(self.original_error),
        }


class ConfigurationError(AnalyzerError):
    """
    Error in analyzer configuration.

    Attributes:
        config_key: The configuration key that caused the error (if known).
    """

    def __init__(self, message: str, config_key: str | None = None) -> None:
        self.config_key = config_key
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["config_key"] = self.config_key
        return result


# ── Parse Errors ─────────────────────────────────────────────────────────


class DashboardParseError(DashSenseError):
    """
    Raised when dashboard JSON cannot be loaded into the document model.

    Attributes:
        detail: Technical details for debugging (optional).
        source: Stage that failed ("file_read", "json_decode", "structure",
            "validation", "resource_limit").
    """

    def __init__(
        self,
        message: str,
        *,
        detail: str | None = None,
        source: str = "unknown",
    ) -> None:
        self.detail = detail
        self.source = source
        super().__init__(message)

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}\n\nDetails: {self.detail}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["detail"] = self.detail
        result["source"] = self.source
        return result


class ExpressionParseError(DashSenseError):
    """
    Raised when a PromQL expression cannot be parsed.

    Attributes:
        position: Character offset in the (substituted) expression where
            parsing stopped, if known.
    """

    def __init__(self, message: str, position: int | None = None) -> None:
        self.position = position
        super().__init__(message)

    def __str__(self) -> str:
        if self.position is not None:
            return f"{self.message} (at position {self.position})"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["position"] = self.position
        return result


# ── Enrichment Errors ────────────────────────────────────────────────────


class CardinalityError(DashSenseError):
    """
    The Prometheus TSDB status endpoint could not be used.

    Attributes:
        url: Endpoint that was queried.
        status_code: HTTP status, when a response was received.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["url"] = self.url
        result["status_code"] = self.status_code
        return result


# ── Fix Errors ───────────────────────────────────────────────────────────


class FixError(DashSenseError):
    """Raised when the raw dashboard cannot be decoded or re-encoded for patching."""
    pass
