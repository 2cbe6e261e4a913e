"""
Variable substitution for dashboard templates.

Replaces ``{{name}}`` tokens in query strings and metric expressions with
caller-supplied values. Substitution is pure: the template is never mutated
and a new DashboardConfig is returned.

Usage:
    from quickdash.parser import substitute_variables

    result = substitute_variables(template, {"env": "prod"})
    if result.success:
        config = result.data
    else:
        print(result.error)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Any, Iterable

from quickdash.core.errors import ConfigurationError, MissingVariablesError, QuickDashError
from quickdash.models import DashboardConfig, Variables

TOKEN_PATTERN = re.compile(r"\{\{(\w+)\}\}")


@dataclass(frozen=True)
class ParseResult:
    """Outcome of substituting variables into a template."""

    success: bool
    data: DashboardConfig | None = None
    error: QuickDashError | None = None

    def unwrap(self) -> DashboardConfig:
        """Return the substituted config or raise the substitution error."""
        if not self.success or self.data is None:
            raise self.error or ConfigurationError("Variable substitution failed")
        return self.data


def replace_variables(template: str, variables: Variables) -> str:
    """Substitute every ``{{name}}`` token in a single string."""

    def _substitute(match: re.Match[str]) -> str:
        key = match.group(1)
        if key not in variables:
            raise MissingVariablesError([key])
        return str(variables[key])

    return TOKEN_PATTERN.sub(_substitute, template)


def find_tokens(template: str) -> list[str]:
    """Names referenced by ``{{name}}`` tokens, in order of first appearance."""
    return list(dict.fromkeys(TOKEN_PATTERN.findall(template)))


def substitute_variables(template: DashboardConfig, variables: Variables) -> ParseResult:
    """
    Validate declared variables and substitute tokens throughout a template.

    Args:
        template: Dashboard definition containing ``{{name}}`` tokens
        variables: Values to substitute, keyed by variable name

    Returns:
        ParseResult with the substituted config, or with a
        MissingVariablesError naming every missing declared variable (or the
        first undeclared token that has no value)
    """
    if template.variables:
        missing = [name for name in template.variables if name not in variables]
        if missing:
            return ParseResult(success=False, error=MissingVariablesError(missing))

    try:
        queries = {
            query_id: replace_variables(query, variables)
            for query_id, query in template.queries.items()
        }
        panels = tuple(
            replace(
                panel,
                metrics=tuple(
                    replace(metric, expression=replace_variables(metric.expression, variables))
                    for metric in panel.metrics
                ),
            )
            for panel in template.panels
        )
    except QuickDashError as exc:
        return ParseResult(success=False, error=exc)

    return ParseResult(success=True, data=replace(template, queries=queries, panels=panels))


def parse_variable_assignments(assignments: Iterable[str] | None) -> dict[str, Any]:
    """Turn ``["env=prod", "window=5m"]`` into a variables mapping."""
    variables: dict[str, Any] = {}
    for assignment in assignments or []:
        name, sep, value = assignment.partition("=")
        name = name.strip()
        if not sep or not name:
            raise ConfigurationError(
                f"Invalid variable assignment '{assignment}', expected NAME=VALUE",
                details={"assignment": assignment},
            )
        variables[name] = value
    return variables


def referenced_variables(template: DashboardConfig) -> list[str]:
    """All token names used anywhere in a template."""
    strings: list[str] = list(template.queries.values())
    strings.extend(m.expression for p in template.panels for m in p.metrics)
    names: dict[str, None] = {}
    for text in strings:
        for name in find_tokens(text):
            names.setdefault(name, None)
    return list(names)

