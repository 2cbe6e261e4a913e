"""CLI command for statically checking a dashboard file."""

from __future__ import annotations

from typing import Sequence

from quickdash.cli import ux
from quickdash.config.loader import load_dashboard
from quickdash.core.errors import ExitCode, main_with_error_handling
from quickdash.parser import (
    parse_variable_assignments,
    referenced_variables,
    substitute_variables,
)
from quickdash.validation import validate_dashboard


@main_with_error_handling()
def validate_command(dashboard_file: str, variables: Sequence[str] | None = None) -> int:
    """Check variables, identifiers and dependencies of a dashboard file.

    Variables are substituted first, so a template missing required
    variables fails here exactly as it would at execution time. Tokens used
    in the template but missing from its ``variables`` list are reported as
    warnings.
    """
    template = load_dashboard(dashboard_file)

    declared = set(template.variables or ())
    undeclared = [name for name in referenced_variables(template) if name not in declared]
    if undeclared:
        ux.warning(f"Tokens not listed under variables: {', '.join(undeclared)}")

    config = substitute_variables(template, parse_variable_assignments(variables)).unwrap()

    result = validate_dashboard(config)

    for issue in result.issues:
        location = f"[{issue.panel}] " if issue.panel else ""
        if issue.is_error:
            ux.error(f"{location}{issue.message}")
        else:
            ux.warning(f"{location}{issue.message}")

    if not result.passed:
        ux.error(
            f"{result.error_count} error(s), {result.warning_count} warning(s) "
            f"in {result.metrics_checked} metric(s)"
        )
        return ExitCode.CONFIG_ERROR

    ux.success(f"Dashboard OK: {result.metrics_checked} metric(s), {result.warning_count} warning(s)")
    return ExitCode.SUCCESS
