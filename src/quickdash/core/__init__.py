"""Core modules for quickdash - centralized error definitions."""

from quickdash.core.errors import (
    ConfigurationError,
    DuplicateAssignmentError,
    EvaluationError,
    ExecutionCancelledError,
    ExitCode,
    MissingVariablesError,
    ProviderError,
    QuickDashError,
    ResolutionError,
    UnresolvableDependencyError,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "QuickDashError",
    "ConfigurationError",
    "MissingVariablesError",
    "ProviderError",
    "ResolutionError",
    "UnresolvableDependencyError",
    "EvaluationError",
    "DuplicateAssignmentError",
    "ExecutionCancelledError",
    "main_with_error_handling",
    "format_error_message",
]
