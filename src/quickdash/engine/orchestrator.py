"""
Per-panel orchestration of query batching and metric resolution.

All panels of one execution share a single ExecutionContext. A query or
metric resolved while processing one panel is reused by every later panel
instead of being executed again, and a panel title seen twice is served from
the panel cache.
"""

from __future__ import annotations

import time
from typing import AsyncIterator, Mapping, Sequence

import structlog

from quickdash.core.errors import ExecutionCancelledError
from quickdash.engine.batcher import QueryBatcher
from quickdash.engine.resolver import MetricResolver
from quickdash.models import ExecutionContext, MetricValue, Panel, PanelResult, ResolvedValues

logger = structlog.get_logger()


def pending_queries(
    panel: Panel,
    queries: Mapping[str, str],
    values: ResolvedValues,
) -> dict[str, str]:
    """Queries a panel depends on that have no resolved value yet."""
    return {
        dep: queries[dep]
        for dep in panel.dependencies
        if dep in queries and dep not in values
    }


class PanelOrchestrator:
    """Runs the batcher and resolver panel by panel."""

    def __init__(self, batcher: QueryBatcher, resolver: MetricResolver) -> None:
        self.batcher = batcher
        self.resolver = resolver

    async def run(
        self,
        panels: Sequence[Panel],
        queries: Mapping[str, str],
        context: ExecutionContext,
    ) -> AsyncIterator[PanelResult]:
        """Yield one PanelResult per panel, in declared order."""
        for panel in panels:
            cached = context.panel_cache.get(panel.title)
            if cached is not None:
                logger.info("panel_cache_hit", panel=panel.title)
                yield cached
                continue

            if context.cancelled:
                raise ExecutionCancelledError(
                    "Dashboard execution cancelled",
                    details={"next_panel": panel.title},
                )

            yield await self.run_panel(panel, queries, context)

    async def run_panel(
        self,
        panel: Panel,
        queries: Mapping[str, str],
        context: ExecutionContext,
    ) -> PanelResult:
        """Compute and cache the result of a single panel."""
        started = time.monotonic()
        to_fetch = pending_queries(panel, queries, context.values)
        logger.info(
            "panel_started",
            panel=panel.title,
            metrics=len(panel.metrics),
            queries=len(to_fetch),
        )

        results: list[MetricValue] = [
            MetricValue(id=dep, value=context.values[dep])
            for dep in panel.dependencies
            if dep in queries and dep in context.values
        ]

        async for item in self.batcher.run(
            to_fetch,
            cancel_event=context.cancel_event,
            on_failure=context.record_failure,
        ):
            context.values.assign(item.id, item.value)
            context.failed_queries.pop(item.id, None)
            results.append(item)

        if context.cancelled:
            raise ExecutionCancelledError(
                "Dashboard execution cancelled",
                details={"panel": panel.title},
            )

        results.extend(
            self.resolver.resolve(
                panel.metrics,
                context.values,
                context.failed_queries,
                query_ids=queries,
            )
        )

        panel_result = PanelResult(panel=panel.title, results=results)
        context.panel_cache[panel.title] = panel_result

        logger.info(
            "panel_completed",
            panel=panel.title,
            values=len(results),
            duration_seconds=round(time.monotonic() - started, 3),
        )
        return panel_result
