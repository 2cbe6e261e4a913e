"""Tests for fixpoint metric resolution."""

import pytest
from quickdash.core.errors import (
    DuplicateAssignmentError,
    EvaluationError,
    UnresolvableDependencyError,
)
from quickdash.expressions import SafeExpressionEvaluator
from quickdash.engine.resolver import MetricResolver
from quickdash.models import Metric, MetricValue, ResolvedValues
from structlog.testing import capture_logs


class RecordingEvaluator:
    """Delegates to the default evaluator and records every call."""

    def __init__(self):
        self.inner = SafeExpressionEvaluator()
        self.calls = []

    def evaluate(self, expression, bindings):
        self.calls.append(expression)
        return self.inner.evaluate(expression, bindings)


@pytest.fixture
def resolver():
    return MetricResolver()


class TestMetricResolver:
    """Tests for MetricResolver.resolve."""

    def test_resolves_from_query_values(self, resolver):
        values = ResolvedValues({"a": 1.0, "b": 2.0})

        results = list(resolver.resolve([Metric("sum", "a + b", ("a", "b"))], values))

        assert results == [MetricValue("sum", 3.0)]
        assert values["sum"] == 3.0

    def test_forward_references_in_any_order(self, resolver):
        """Metrics may depend on metrics declared after them."""
        values = ResolvedValues({"x": 2.0})
        metrics = [
            Metric("c", "b * 10", ("b",)),
            Metric("b", "a + 1", ("a",)),
            Metric("a", "x * x", ("x",)),
        ]

        results = list(resolver.resolve(metrics, values))

        assert [r.id for r in results] == ["a", "b", "c"]
        assert {r.id: r.value for r in results} == {"a": 4.0, "b": 5.0, "c": 50.0}

    def test_every_metric_exactly_once(self, resolver):
        """Each metric appears once with the value of its expression over final bindings."""
        values = ResolvedValues({"q1": 3.0, "q2": 4.0})
        metrics = [
            Metric("hyp", "sqrt(sq1 + sq2)", ("sq1", "sq2")),
            Metric("sq1", "q1 ** 2", ("q1",)),
            Metric("sq2", "q2 ** 2", ("q2",)),
            Metric("ratio", "hyp / q1", ("hyp", "q1")),
        ]

        results = list(resolver.resolve(metrics, values))

        assert sorted(r.id for r in results) == ["hyp", "ratio", "sq1", "sq2"]
        final = values.snapshot()
        evaluator = SafeExpressionEvaluator()
        for metric in metrics:
            assert final[metric.id] == evaluator.evaluate(metric.expression, final)

    def test_metric_without_dependencies(self, resolver):
        values = ResolvedValues()
        assert list(resolver.resolve([Metric("const", "42")], values)) == [
            MetricValue("const", 42.0)
        ]

    def test_cycle_raises_instead_of_looping(self, resolver):
        values = ResolvedValues({"q": 1.0})
        metrics = [
            Metric("a", "b + 1", ("b",)),
            Metric("b", "a + 1", ("a",)),
            Metric("ok", "q", ("q",)),
        ]

        resolved = []
        with pytest.raises(UnresolvableDependencyError) as exc:
            for item in resolver.resolve(metrics, values):
                resolved.append(item.id)

        assert resolved == ["ok"]
        assert exc.value.stuck == {"a": ["b"], "b": ["a"]}
        assert "a (waiting on b)" in str(exc.value)

    def test_typo_in_dependency(self, resolver):
        values = ResolvedValues({"requests": 10.0})

        with pytest.raises(UnresolvableDependencyError) as exc:
            list(resolver.resolve([Metric("rate", "reqests / 60", ("reqests",))], values))

        assert exc.value.stuck == {"rate": ["reqests"]}

    def test_names_failed_upstream_queries(self, resolver):
        values = ResolvedValues({"b": 1.0})

        with pytest.raises(UnresolvableDependencyError) as exc:
            list(
                resolver.resolve(
                    [Metric("sum", "a + b", ("a", "b"))],
                    values,
                    failed_queries={"a": "timeout", "unrelated": "boom"},
                )
            )

        assert exc.value.failed_queries == {"a": "timeout"}
        assert "Failed upstream queries: a" in str(exc.value)

    def test_evaluation_failure_names_metric(self, resolver):
        values = ResolvedValues({"a": 1.0, "zero": 0.0})

        with pytest.raises(EvaluationError) as exc:
            list(resolver.resolve([Metric("bad", "a / zero", ("a", "zero"))], values))

        assert exc.value.metric_id == "bad"
        assert "bad" in str(exc.value)
        assert "bad" not in values

    def test_non_finite_result_is_an_evaluation_error(self):
        class InfinityEvaluator:
            def evaluate(self, expression, bindings):
                return float("inf")

        with pytest.raises(EvaluationError, match="non-finite"):
            list(MetricResolver(InfinityEvaluator()).resolve([Metric("m", "x")], ResolvedValues()))

    def test_non_numeric_result_is_an_evaluation_error(self):
        class StringEvaluator:
            def evaluate(self, expression, bindings):
                return "12"

        with pytest.raises(EvaluationError, match="expected a number"):
            list(MetricResolver(StringEvaluator()).resolve([Metric("m", "x")], ResolvedValues()))

    def test_already_resolved_metric_is_reused(self):
        """A metric computed for an earlier panel is not evaluated again."""
        evaluator = RecordingEvaluator()
        values = ResolvedValues({"a": 1.0, "double": 2.0})

        results = list(
            MetricResolver(evaluator).resolve(
                [Metric("double", "a * 2", ("a",)), Metric("quad", "double * 2", ("double",))],
                values,
            )
        )

        assert results == [MetricValue("double", 2.0), MetricValue("quad", 4.0)]
        assert evaluator.calls == ["double * 2"]

    def test_empty_metric_list(self, resolver):
        assert list(resolver.resolve([], ResolvedValues())) == []

    def test_integer_too_large_for_float_is_an_evaluation_error(self, resolver):
        values = ResolvedValues()

        with pytest.raises(EvaluationError) as exc:
            list(resolver.resolve([Metric("big", "10 ** 400")], values))

        assert exc.value.metric_id == "big"
        assert "out of range" in str(exc.value)
        assert "big" not in values

    def test_huge_integer_power_is_an_evaluation_error(self, resolver):
        with pytest.raises(EvaluationError) as exc:
            list(resolver.resolve([Metric("tower", "9 ** 9 ** 9")], ResolvedValues()))

        assert exc.value.metric_id == "tower"

    def test_metric_sharing_a_query_identifier(self, resolver):
        evaluator = RecordingEvaluator()
        values = ResolvedValues({"a": 1.0})

        with pytest.raises(DuplicateAssignmentError) as exc:
            list(
                MetricResolver(evaluator).resolve(
                    [Metric("a", "2 * 2")], values, query_ids={"a": "query_a"}
                )
            )

        assert exc.value.identifier == "a"
        assert "same identifier as a query" in str(exc.value)
        assert evaluator.calls == []
        assert values["a"] == 1.0

    def test_duplicate_metric_in_one_list_keeps_first_and_logs(self, resolver):
        values = ResolvedValues()

        with capture_logs() as logs:
            results = list(resolver.resolve([Metric("m", "1"), Metric("m", "2")], values))

        assert results == [MetricValue("m", 1.0)]
        dropped = [log for log in logs if log["event"] == "duplicate_metric_ignored"]
        assert len(dropped) == 1
        assert dropped[0]["metric_id"] == "m"
        assert dropped[0]["expression"] == "2"
