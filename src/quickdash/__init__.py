"""
quickdash - compute dashboard panels from raw queries and derived metrics.

Usage:
    from quickdash import DashboardEngine, DashboardConfig, substitute_variables

    config = substitute_variables(template, {"env": "prod"}).unwrap()
    engine = DashboardEngine(execute_query)
    results = await engine.execute_dashboard(config)
"""

from quickdash.config.loader import load_dashboard
from quickdash.core.errors import (
    ConfigurationError,
    EvaluationError,
    ExecutionCancelledError,
    MissingVariablesError,
    QuickDashError,
    UnresolvableDependencyError,
)
from quickdash.engine import DashboardEngine, MetricResolver, PanelOrchestrator, QueryBatcher
from quickdash.expressions import ExpressionEvaluator, SafeExpressionEvaluator
from quickdash.models import (
    DashboardConfig,
    ExecutionContext,
    Metric,
    MetricValue,
    Panel,
    PanelResult,
    ResolvedValues,
)
from quickdash.parser import ParseResult, substitute_variables

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "DashboardConfig",
    "DashboardEngine",
    "EvaluationError",
    "ExecutionCancelledError",
    "ExecutionContext",
    "ExpressionEvaluator",
    "Metric",
    "MetricResolver",
    "MetricValue",
    "MissingVariablesError",
    "Panel",
    "PanelOrchestrator",
    "PanelResult",
    "ParseResult",
    "QueryBatcher",
    "QuickDashError",
    "ResolvedValues",
    "SafeExpressionEvaluator",
    "UnresolvableDependencyError",
    "load_dashboard",
    "substitute_variables",
]
