"""
Static checks for dashboard definitions.

Catches mistakes that would otherwise only surface at execution time:
- Duplicate panel titles (the panel cache would serve the first one)
- Identifiers declared both as a query and a metric
- The same metric identifier defined with different expressions
- Dependencies naming identifiers that do not exist
- Expression names missing from the declared dependencies
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from quickdash.expressions import ExpressionError, extract_names
from quickdash.models import DashboardConfig, Metric


class Severity(Enum):
    """Validation issue severity levels."""

    ERROR = "error"
    WARNING = "warning"


@dataclass
class ValidationIssue:
    """A single validation issue."""

    severity: Severity
    check: str
    message: str
    panel: str | None = None
    identifier: str | None = None

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR


@dataclass
class ValidationResult:
    """Result of validating a dashboard."""

    issues: list[ValidationIssue] = field(default_factory=list)
    metrics_checked: int = 0

    @property
    def passed(self) -> bool:
        return not any(issue.is_error for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for issue in self.issues if not issue.is_error)


def validate_dashboard(config: DashboardConfig) -> ValidationResult:
    """Run every static check against a (substituted or template) dashboard."""
    result = ValidationResult()

    seen_titles: set[str] = set()
    for panel in config.panels:
        if panel.title in seen_titles:
            result.issues.append(
                ValidationIssue(
                    severity=Severity.ERROR,
                    check="unique_titles",
                    message=f"Duplicate panel title '{panel.title}'",
                    panel=panel.title,
                )
            )
        seen_titles.add(panel.title)

    metrics: dict[str, Metric] = {}
    for panel in config.panels:
        for metric in panel.metrics:
            result.metrics_checked += 1
            previous = metrics.setdefault(metric.id, metric)
            if previous != metric:
                result.issues.append(
                    ValidationIssue(
                        severity=Severity.ERROR,
                        check="unique_metrics",
                        message=f"Metric '{metric.id}' is defined more than once with different content",
                        panel=panel.title,
                        identifier=metric.id,
                    )
                )
            if metric.id in config.queries:
                result.issues.append(
                    ValidationIssue(
                        severity=Severity.ERROR,
                        check="shared_namespace",
                        message=f"'{metric.id}' is both a query and a metric identifier",
                        panel=panel.title,
                        identifier=metric.id,
                    )
                )

    known = set(config.queries) | set(metrics)
    for panel in config.panels:
        for metric in panel.metrics:
            result.issues.extend(_check_metric(metric, panel.title, known))

    return result


def _check_metric(metric: Metric, panel: str, known: set[str]) -> list[ValidationIssue]:
    issues = []
    for dep in metric.dependencies:
        if dep not in known:
            issues.append(
                ValidationIssue(
                    severity=Severity.ERROR,
                    check="known_dependencies",
                    message=f"Metric '{metric.id}' depends on unknown identifier '{dep}'",
                    panel=panel,
                    identifier=metric.id,
                )
            )

    try:
        names = extract_names(metric.expression)
    except ExpressionError as e:
        # Custom evaluators may accept syntax the default parser does not.
        issues.append(
            ValidationIssue(
                severity=Severity.WARNING,
                check="expression_syntax",
                message=f"Metric '{metric.id}': {e}",
                panel=panel,
                identifier=metric.id,
            )
        )
        return issues

    undeclared = sorted(names - set(metric.dependencies))
    if undeclared:
        issues.append(
            ValidationIssue(
                severity=Severity.WARNING,
                check="declared_dependencies",
                message=(
                    f"Metric '{metric.id}' references {', '.join(undeclared)} "
                    "without listing them as dependencies"
                ),
                panel=panel,
                identifier=metric.id,
            )
        )
    return issues
