"""
Metric resolution by iterative fixpoint.

Pending metrics are swept repeatedly. Each sweep evaluates every metric whose
dependencies all have values, then removes it from the pending set. Metrics
can therefore be declared in any order and reference each other forward, as
long as some evaluation order exists. A sweep that resolves nothing while
metrics are still pending means that order does not exist (a cycle, a typo,
or a query that failed upstream) and resolution stops with an error.
"""

from __future__ import annotations

import math
from typing import Container, Iterator, Mapping, Sequence

import structlog

from quickdash.core.errors import (
    DuplicateAssignmentError,
    EvaluationError,
    UnresolvableDependencyError,
)
from quickdash.expressions import ExpressionEvaluator, SafeExpressionEvaluator
from quickdash.models import Metric, MetricValue, ResolvedValues

logger = structlog.get_logger()


class MetricResolver:
    """Evaluates metrics once their dependencies are resolved."""

    def __init__(self, evaluator: ExpressionEvaluator | None = None) -> None:
        self.evaluator = evaluator or SafeExpressionEvaluator()

    def resolve(
        self,
        metrics: Sequence[Metric],
        values: ResolvedValues,
        failed_queries: Mapping[str, str] | None = None,
        query_ids: Container[str] = (),
    ) -> Iterator[MetricValue]:
        """
        Resolve metrics against shared values, writing each result back.

        Args:
            metrics: Metrics to resolve, in any order
            values: Shared bindings; resolved metrics are assigned into it
            failed_queries: Known query failures, reported if they block a metric
            query_ids: Identifiers of raw queries; no metric may reuse one

        Yields:
            MetricValue for each metric, in resolution order

        Raises:
            UnresolvableDependencyError: If a sweep makes no progress
            DuplicateAssignmentError: If a metric shares its identifier with a query
            EvaluationError: If a metric expression fails to evaluate
        """
        pending: dict[str, Metric] = {}
        for metric in metrics:
            if metric.id in query_ids:
                raise DuplicateAssignmentError(
                    metric.id,
                    f"Metric '{metric.id}' has the same identifier as a query",
                )
            if metric.id in pending:
                logger.warning(
                    "duplicate_metric_ignored",
                    metric_id=metric.id,
                    expression=metric.expression,
                    kept_expression=pending[metric.id].expression,
                )
                continue
            pending[metric.id] = metric

        sweep = 0
        while pending:
            sweep += 1
            resolved_this_sweep = 0

            for metric_id, metric in list(pending.items()):
                if not all(dep in values for dep in metric.dependencies):
                    continue

                if metric_id in values:
                    # Already computed for an earlier panel of this execution.
                    value = values[metric_id]
                    logger.debug("metric_reused", metric_id=metric_id)
                else:
                    value = self._evaluate(metric, values)
                    values.assign(metric_id, value)
                    logger.debug("metric_resolved", metric_id=metric_id, sweep=sweep)

                del pending[metric_id]
                resolved_this_sweep += 1
                yield MetricValue(id=metric_id, value=value)

            if pending and resolved_this_sweep == 0:
                stuck = {
                    metric_id: [dep for dep in metric.dependencies if dep not in values]
                    for metric_id, metric in pending.items()
                }
                raise UnresolvableDependencyError(stuck, failed_queries=failed_queries)

    def _evaluate(self, metric: Metric, values: ResolvedValues) -> float:
        try:
            result = self.evaluator.evaluate(metric.expression, values.snapshot())
        except Exception as exc:
            raise EvaluationError(metric.id, metric.expression, str(exc)) from exc

        if isinstance(result, bool) or not isinstance(result, (int, float)):
            raise EvaluationError(
                metric.id,
                metric.expression,
                f"expected a number, got {type(result).__name__}",
            )
        try:
            value = float(result)
        except OverflowError as exc:
            raise EvaluationError(
                metric.id, metric.expression, f"result out of range: {exc}"
            ) from exc
        if not math.isfinite(value):
            raise EvaluationError(metric.id, metric.expression, f"non-finite result {value}")
        return value
