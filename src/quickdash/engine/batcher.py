"""
Bounded-concurrency execution of raw queries.

Queries are dispatched in positional batches of at most
``max_concurrent_queries``. Every query of a batch runs concurrently and the
next batch only starts once the whole batch has settled, so no more than N
executions are ever in flight. A failed query is logged and skipped.
"""

from __future__ import annotations

import asyncio
import math
from typing import AsyncIterator, Awaitable, Callable, Mapping

import structlog

from quickdash.models import QueryValue

logger = structlog.get_logger()

QueryExecutor = Callable[[str], Awaitable[float]]
FailureCallback = Callable[[str, BaseException], None]

DEFAULT_MAX_CONCURRENT_QUERIES = 20


class QueryBatcher:
    """Drives a query executor over a QueryMap with a concurrency ceiling."""

    def __init__(
        self,
        execute_query: QueryExecutor,
        max_concurrent_queries: int = DEFAULT_MAX_CONCURRENT_QUERIES,
    ) -> None:
        if max_concurrent_queries < 1:
            raise ValueError("max_concurrent_queries must be at least 1")
        self._execute_query = execute_query
        self.max_concurrent_queries = max_concurrent_queries

    async def run(
        self,
        queries: Mapping[str, str],
        *,
        cancel_event: asyncio.Event | None = None,
        on_failure: FailureCallback | None = None,
    ) -> AsyncIterator[QueryValue]:
        """
        Execute queries batch by batch, yielding values as they complete.

        Args:
            queries: Identifier -> query text
            cancel_event: When set, no further batch is started
            on_failure: Called with (identifier, error) for each failed query

        Yields:
            QueryValue for every query that succeeded, in completion order
            within each batch
        """
        entries = list(queries.items())
        size = self.max_concurrent_queries
        total_batches = math.ceil(len(entries) / size)

        for batch_number, start in enumerate(range(0, len(entries), size), 1):
            if cancel_event is not None and cancel_event.is_set():
                logger.warning(
                    "query_batching_cancelled",
                    remaining_queries=len(entries) - start,
                )
                return

            batch = entries[start : start + size]
            logger.debug(
                "query_batch_started",
                batch=batch_number,
                total_batches=total_batches,
                size=len(batch),
            )

            tasks = [
                asyncio.ensure_future(self._execute(query_id, query)) for query_id, query in batch
            ]
            try:
                for completed in asyncio.as_completed(tasks):
                    query_id, value, error = await completed
                    if error is not None:
                        logger.warning("query_failed", query_id=query_id, error=str(error))
                        if on_failure is not None:
                            on_failure(query_id, error)
                        continue
                    yield QueryValue(id=query_id, value=value)
            finally:
                # Consumer stopped iterating mid-batch.
                for task in tasks:
                    if not task.done():
                        task.cancel()

    async def _execute(self, query_id: str, query: str) -> tuple[str, float, Exception | None]:
        try:
            raw = await self._execute_query(query)
            if isinstance(raw, bool) or not isinstance(raw, (int, float)):
                raise TypeError(f"expected a number, got {type(raw).__name__}: {raw!r}")
            value = float(raw)
            if not math.isfinite(value):
                raise ValueError(f"non-finite query result: {value}")
            return query_id, value, None
        except Exception as exc:  # a single query failure never aborts the batch
            return query_id, math.nan, exc
