"""Dashboard execution facade."""

from __future__ import annotations

import asyncio
import time
from typing import AsyncIterator

import structlog

from quickdash.engine.batcher import DEFAULT_MAX_CONCURRENT_QUERIES, QueryBatcher, QueryExecutor
from quickdash.engine.orchestrator import PanelOrchestrator
from quickdash.engine.resolver import MetricResolver
from quickdash.expressions import ExpressionEvaluator
from quickdash.models import DashboardConfig, ExecutionContext, PanelResult

logger = structlog.get_logger()


class DashboardEngine:
    """
    Computes panel results for a dashboard.

    Raw queries go through the injected ``execute_query`` coroutine function
    with at most ``max_concurrent_queries`` in flight; metric expressions go
    through ``evaluator``. Each execution gets its own ExecutionContext, so a
    single engine can serve concurrent executions.
    """

    def __init__(
        self,
        execute_query: QueryExecutor,
        evaluator: ExpressionEvaluator | None = None,
        max_concurrent_queries: int = DEFAULT_MAX_CONCURRENT_QUERIES,
    ) -> None:
        self.batcher = QueryBatcher(execute_query, max_concurrent_queries)
        self.resolver = MetricResolver(evaluator)
        self.orchestrator = PanelOrchestrator(self.batcher, self.resolver)

    async def execute_dashboard(
        self,
        config: DashboardConfig,
        stream: bool = False,
        cancel_event: asyncio.Event | None = None,
    ) -> list[PanelResult] | AsyncIterator[PanelResult]:
        """
        Execute a dashboard.

        Args:
            config: Dashboard with variables already substituted
            stream: Return a lazy async iterator of panel results instead of a list
            cancel_event: When set, no new query batch or panel is started

        Returns:
            List of PanelResult, or an async iterator yielding them one panel
            at a time when ``stream`` is true
        """
        if stream:
            return self.stream_dashboard(config, cancel_event=cancel_event)
        return await self.run_dashboard(config, cancel_event=cancel_event)

    async def stream_dashboard(
        self,
        config: DashboardConfig,
        cancel_event: asyncio.Event | None = None,
    ) -> AsyncIterator[PanelResult]:
        """Yield panel results incrementally, in declared panel order."""
        context = ExecutionContext(cancel_event=cancel_event)
        started = time.monotonic()
        logger.info(
            "dashboard_started",
            panels=len(config.panels),
            queries=len(config.queries),
        )

        async for panel_result in self.orchestrator.run(config.panels, config.queries, context):
            yield panel_result

        logger.info(
            "dashboard_completed",
            panels=len(context.panel_cache),
            values=len(context.values),
            failed_queries=sorted(context.failed_queries),
            duration_seconds=round(time.monotonic() - started, 3),
        )

    async def run_dashboard(
        self,
        config: DashboardConfig,
        cancel_event: asyncio.Event | None = None,
    ) -> list[PanelResult]:
        """Execute every panel and return all results at once."""
        return [
            panel_result
            async for panel_result in self.stream_dashboard(config, cancel_event=cancel_event)
        ]
