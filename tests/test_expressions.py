"""Tests for the default expression evaluator."""

import math

import pytest
from quickdash.expressions import ExpressionError, SafeExpressionEvaluator, extract_names


@pytest.fixture
def evaluator():
    return SafeExpressionEvaluator()


class TestSafeExpressionEvaluator:
    """Tests for SafeExpressionEvaluator.evaluate."""

    @pytest.mark.parametrize(
        "expression,expected",
        [
            ("a + b", 3),
            ("a - b * 2", -3),
            ("(a + b) / 2", 1.5),
            ("b ** 3", 8),
            ("7 // b", 3),
            ("7 % b", 1),
            ("-a + +b", 1),
        ],
    )
    def test_arithmetic(self, evaluator, expression, expected):
        """Arithmetic operators follow Python precedence."""
        assert evaluator.evaluate(expression, {"a": 1, "b": 2}) == expected

    def test_functions_and_constants(self, evaluator):
        """Whitelisted functions and constants are available."""
        assert evaluator.evaluate("max(a, b, 10)", {"a": 1, "b": 2}) == 10
        assert evaluator.evaluate("round(x, 1)", {"x": 1.26}) == 1.3
        assert evaluator.evaluate("sqrt(16) + abs(-1)", {}) == 5
        assert evaluator.evaluate("pi", {}) == math.pi

    def test_bindings_shadow_constants(self, evaluator):
        """A bound identifier named like a constant wins."""
        assert evaluator.evaluate("e * 2", {"e": 4}) == 8

    def test_custom_functions(self):
        """Extra functions can be registered."""
        evaluator = SafeExpressionEvaluator(functions={"double": lambda x: x * 2})
        assert evaluator.evaluate("double(a)", {"a": 21}) == 42

    def test_unknown_identifier(self, evaluator):
        with pytest.raises(ExpressionError, match="Unknown identifier: missing"):
            evaluator.evaluate("a + missing", {"a": 1})

    def test_unknown_function(self, evaluator):
        with pytest.raises(ExpressionError, match="Unknown function"):
            evaluator.evaluate("__import__('os')", {})

    def test_attribute_access_rejected(self, evaluator):
        with pytest.raises(ExpressionError, match="Unsupported"):
            evaluator.evaluate("a.real", {"a": 1})

    def test_comparison_rejected(self, evaluator):
        with pytest.raises(ExpressionError, match="Unsupported"):
            evaluator.evaluate("a > 1", {"a": 2})

    def test_string_literal_rejected(self, evaluator):
        with pytest.raises(ExpressionError, match="Unsupported literal"):
            evaluator.evaluate("'abc'", {})

    def test_syntax_error(self, evaluator):
        with pytest.raises(ExpressionError, match="Invalid expression syntax"):
            evaluator.evaluate("a +", {"a": 1})

    def test_empty_expression(self, evaluator):
        with pytest.raises(ExpressionError, match="Empty expression"):
            evaluator.evaluate("   ", {})

    def test_division_by_zero(self, evaluator):
        """Arithmetic errors surface as ExpressionError."""
        with pytest.raises(ExpressionError, match="ZeroDivisionError"):
            evaluator.evaluate("a / b", {"a": 1, "b": 0})

    def test_huge_integer_power_overflows(self, evaluator):
        """Integer powers too wide to compute exactly fall back to float math."""
        with pytest.raises(ExpressionError, match="OverflowError"):
            evaluator.evaluate("9 ** 9 ** 9", {})

    def test_moderate_integer_power_stays_exact(self, evaluator):
        assert evaluator.evaluate("2 ** 100", {}) == 2**100


class TestExtractNames:
    """Tests for extract_names."""

    def test_names_exclude_functions_and_constants(self):
        assert extract_names("max(errors, total) * pi + ratio") == {"errors", "total", "ratio"}

    def test_invalid_expression(self):
        with pytest.raises(ExpressionError):
            extract_names("a +* ")
