"""Dashboard execution engine: query batching, metric resolution, panel orchestration."""

from quickdash.engine.batcher import QueryBatcher, QueryExecutor
from quickdash.engine.dashboard import DashboardEngine
from quickdash.engine.orchestrator import PanelOrchestrator, pending_queries
from quickdash.engine.resolver import MetricResolver

__all__ = [
    "DashboardEngine",
    "MetricResolver",
    "PanelOrchestrator",
    "QueryBatcher",
    "QueryExecutor",
    "pending_queries",
]
