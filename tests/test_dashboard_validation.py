"""Tests for static dashboard validation."""

from quickdash.models import DashboardConfig, Metric, Panel
from quickdash.validation import Severity, validate_dashboard


def checks(result):
    return [issue.check for issue in result.issues]


class TestValidateDashboard:
    """Tests for validate_dashboard."""

    def test_clean_dashboard(self):
        config = DashboardConfig(
            queries={"a": "up", "b": "up"},
            panels=(
                Panel(
                    title="P",
                    metrics=(
                        Metric("sum", "a + b", ("a", "b")),
                        Metric("double", "sum * 2", ("sum",)),
                    ),
                ),
            ),
        )

        result = validate_dashboard(config)

        assert result.passed
        assert result.issues == []
        assert result.metrics_checked == 2

    def test_duplicate_titles(self):
        panel = Panel(title="P", metrics=(Metric("k", "1"),))
        result = validate_dashboard(DashboardConfig(panels=(panel, panel)))

        assert "unique_titles" in checks(result)
        assert not result.passed

    def test_metric_shadowing_query(self):
        config = DashboardConfig(
            queries={"a": "up"},
            panels=(Panel(title="P", metrics=(Metric("a", "1"),)),),
        )

        assert "shared_namespace" in checks(validate_dashboard(config))

    def test_conflicting_metric_definitions(self):
        config = DashboardConfig(
            panels=(
                Panel(title="One", metrics=(Metric("m", "1"),)),
                Panel(title="Two", metrics=(Metric("m", "2"),)),
            ),
        )

        assert "unique_metrics" in checks(validate_dashboard(config))

    def test_identical_metric_in_two_panels_is_fine(self):
        metric = Metric("m", "1")
        config = DashboardConfig(
            panels=(Panel(title="One", metrics=(metric,)), Panel(title="Two", metrics=(metric,)))
        )

        assert validate_dashboard(config).passed

    def test_unknown_dependency(self):
        config = DashboardConfig(
            queries={"requests": "up"},
            panels=(Panel(title="P", metrics=(Metric("rate", "reqests / 60", ("reqests",)),)),),
        )

        result = validate_dashboard(config)

        issue = next(i for i in result.issues if i.check == "known_dependencies")
        assert issue.severity == Severity.ERROR
        assert "reqests" in issue.message
        assert issue.panel == "P"

    def test_undeclared_expression_name_is_warning(self):
        config = DashboardConfig(
            queries={"a": "up", "b": "up"},
            panels=(Panel(title="P", metrics=(Metric("m", "a + b", ("a",)),)),),
        )

        result = validate_dashboard(config)

        assert result.passed
        assert result.warning_count == 1
        assert "b" in result.issues[0].message

    def test_unparsable_expression_is_warning(self):
        config = DashboardConfig(
            panels=(Panel(title="P", metrics=(Metric("m", "a ? b : c"),)),),
        )

        result = validate_dashboard(config)

        assert result.passed
        assert checks(result) == ["expression_syntax"]
