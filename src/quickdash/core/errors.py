"""
Unified error handling for quickdash.

Every failure that can abort a dashboard execution, or a CLI command, is a
QuickDashError subclass carrying an exit code and structured details.

Exit Codes:
- 0: Success
- 10: Configuration error (bad dashboard file, missing variables)
- 11: Provider error (query backend failure)
- 12: Resolution error (unresolvable dependency, evaluation failure)
- 127: Unknown/internal error
- 130: Execution cancelled
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, Iterable, Mapping, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for CLI commands."""

    SUCCESS = 0
    CONFIG_ERROR = 10
    PROVIDER_ERROR = 11
    RESOLUTION_ERROR = 12
    UNKNOWN_ERROR = 127
    CANCELLED = 130


class QuickDashError(Exception):
    """Base exception for quickdash errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(QuickDashError):
    """Raised for malformed dashboard definitions or settings."""

    exit_code = ExitCode.CONFIG_ERROR


class MissingVariablesError(ConfigurationError):
    """Raised when required template variables are not supplied."""

    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        if len(self.missing) == 1:
            message = f"Missing required variable: {self.missing[0]}"
        else:
            message = f"Missing required variables: {', '.join(self.missing)}"
        super().__init__(message, details={"missing": self.missing})


class ProviderError(QuickDashError):
    """Raised when a query backend fails."""

    exit_code = ExitCode.PROVIDER_ERROR


class ResolutionError(QuickDashError):
    """Raised when metric values cannot be computed."""

    exit_code = ExitCode.RESOLUTION_ERROR


class UnresolvableDependencyError(ResolutionError):
    """Raised when a resolver sweep makes no progress with metrics still pending."""

    def __init__(
        self,
        stuck: Mapping[str, list[str]],
        failed_queries: Mapping[str, str] | None = None,
    ):
        self.stuck = {metric_id: list(missing) for metric_id, missing in stuck.items()}
        self.failed_queries = {
            query_id: error
            for query_id, error in (failed_queries or {}).items()
            if any(query_id in missing for missing in self.stuck.values())
        }

        parts = [
            f"{metric_id} (waiting on {', '.join(missing)})"
            for metric_id, missing in self.stuck.items()
        ]
        message = f"Unresolvable metric dependencies: {'; '.join(parts)}"
        if self.failed_queries:
            message += f". Failed upstream queries: {', '.join(self.failed_queries)}"

        details: dict[str, Any] = {"stuck_metrics": sorted(self.stuck)}
        if self.failed_queries:
            details["failed_queries"] = sorted(self.failed_queries)
        super().__init__(message, details=details)


class EvaluationError(ResolutionError):
    """Raised when a metric expression fails to evaluate."""

    def __init__(self, metric_id: str, expression: str, reason: str):
        self.metric_id = metric_id
        self.expression = expression
        self.reason = reason
        super().__init__(
            f"Failed to evaluate metric '{metric_id}' ({expression!r}): {reason}",
            details={"metric": metric_id},
        )


class DuplicateAssignmentError(ResolutionError):
    """Raised when an identifier would be assigned twice in one execution."""

    def __init__(self, identifier: str, message: str | None = None):
        self.identifier = identifier
        super().__init__(
            message or f"Identifier '{identifier}' already has a resolved value",
            details={"identifier": identifier},
        )


class ExecutionCancelledError(QuickDashError):
    """Raised when a dashboard execution is cancelled before completion."""

    exit_code = ExitCode.CANCELLED


# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(*, debug: bool = False) -> Callable[[F], F]:
    """
    Decorator turning a CLI command's exceptions into exit codes.

    QuickDashError subclasses map to their own ``exit_code`` and are printed
    with their details; KeyboardInterrupt maps to CANCELLED; anything else is
    logged with its traceback and maps to UNKNOWN_ERROR.

    Args:
        debug: Also print tracebacks of QuickDashError failures to stderr
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except QuickDashError as e:
                logger.error(
                    "command_error",
                    error_type=type(e).__name__,
                    exit_code=int(e.exit_code),
                    error=e.message,
                )
                print(f"Error: {format_error_message(e)}", file=sys.stderr)
                if debug:
                    traceback.print_exc(file=sys.stderr)
                return e.exit_code
            except KeyboardInterrupt:
                logger.info("command_interrupted")
                return ExitCode.CANCELLED
            except Exception as e:
                logger.exception("unexpected_error", error_type=type(e).__name__)
                print(f"Error: {type(e).__name__}: {e}", file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: QuickDashError) -> str:
    """Render an error message followed by its details."""
    if not error.details:
        return error.message
    rendered = ", ".join(f"{key}={value}" for key, value in error.details.items())
    return f"{error.message} ({rendered})"
