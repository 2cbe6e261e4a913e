"""
Metric expression evaluation.

The engine only depends on the ExpressionEvaluator protocol; any object with
a compatible ``evaluate`` method can be injected. SafeExpressionEvaluator is
the default: arithmetic over bound identifiers, evaluated by walking a parsed
``ast`` tree against a whitelist instead of calling ``eval``.

Expression Language:
    # Arithmetic
    errors / requests * 100
    (p99 - p50) ** 2
    -delta + 1

    # Functions and constants
    max(cpu_a, cpu_b)
    round(ratio, 2)
    sqrt(variance) * pi
"""

from __future__ import annotations

import ast
import math
import operator
from typing import Any, Callable, Mapping, Protocol


class ExpressionError(ValueError):
    """Raised when an expression is malformed or cannot be evaluated."""


class ExpressionEvaluator(Protocol):
    """Contract for evaluating a metric expression against bound values."""

    def evaluate(self, expression: str, bindings: Mapping[str, float]) -> float:
        ...


MAX_INTEGER_POWER_BITS = 4096


def _bounded_pow(base: Any, exponent: Any) -> Any:
    # Integer powers wider than MAX_INTEGER_POWER_BITS are computed as floats.
    if (
        isinstance(base, int)
        and isinstance(exponent, int)
        and abs(exponent) * base.bit_length() > MAX_INTEGER_POWER_BITS
    ):
        return math.pow(base, exponent)
    return operator.pow(base, exponent)


BINARY_OPERATORS: dict[type[ast.operator], Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: _bounded_pow,
}

UNARY_OPERATORS: dict[type[ast.unaryop], Callable[[Any], Any]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

FUNCTIONS: dict[str, Callable[..., Any]] = {
    "abs": abs,
    "min": min,
    "max": max,
    "round": round,
    "sqrt": math.sqrt,
    "log": math.log,
    "log10": math.log10,
    "exp": math.exp,
    "floor": math.floor,
    "ceil": math.ceil,
    "pow": math.pow,
}

CONSTANTS: dict[str, float] = {
    "pi": math.pi,
    "e": math.e,
}


def _parse(expression: str) -> ast.Expression:
    if not expression or not expression.strip():
        raise ExpressionError("Empty expression")
    try:
        return ast.parse(expression.strip(), mode="eval")
    except SyntaxError as exc:
        raise ExpressionError(f"Invalid expression syntax: {exc.msg}") from exc
    except ValueError as exc:
        raise ExpressionError(f"Invalid expression: {exc}") from exc


def extract_names(expression: str) -> set[str]:
    """
    Identifiers an expression reads, excluding built-in functions and constants.

    Raises:
        ExpressionError: If the expression cannot be parsed
    """
    tree = _parse(expression)
    called = {
        node.func.id
        for node in ast.walk(tree)
        if isinstance(node, ast.Call) and isinstance(node.func, ast.Name)
    }
    return {
        node.id
        for node in ast.walk(tree)
        if isinstance(node, ast.Name) and node.id not in called and node.id not in CONSTANTS
    }


class SafeExpressionEvaluator:
    """Evaluates arithmetic expressions over a name -> number binding set."""

    def __init__(
        self,
        functions: Mapping[str, Callable[..., Any]] | None = None,
        constants: Mapping[str, float] | None = None,
    ) -> None:
        self.functions = dict(FUNCTIONS)
        self.functions.update(functions or {})
        self.constants = dict(CONSTANTS)
        self.constants.update(constants or {})

    def evaluate(self, expression: str, bindings: Mapping[str, float]) -> float:
        """
        Evaluate an expression.

        Args:
            expression: Expression such as ``"a + b * 2"``
            bindings: Values for the identifiers the expression references

        Returns:
            Numeric result

        Raises:
            ExpressionError: For syntax errors, unsupported constructs,
                unknown names or arithmetic failures (e.g. division by zero)
        """
        tree = _parse(expression)
        try:
            return self._eval(tree.body, bindings)
        except ExpressionError:
            raise
        except (ArithmeticError, ValueError, TypeError) as exc:
            raise ExpressionError(f"{type(exc).__name__}: {exc}") from exc

    def _eval(self, node: ast.AST, bindings: Mapping[str, float]) -> Any:
        if isinstance(node, ast.Constant):
            if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
                raise ExpressionError(f"Unsupported literal: {node.value!r}")
            return node.value

        if isinstance(node, ast.Name):
            if node.id in bindings:
                return bindings[node.id]
            if node.id in self.constants:
                return self.constants[node.id]
            raise ExpressionError(f"Unknown identifier: {node.id}")

        if isinstance(node, ast.BinOp):
            op = BINARY_OPERATORS.get(type(node.op))
            if op is None:
                raise ExpressionError(f"Unsupported operator: {type(node.op).__name__}")
            return op(self._eval(node.left, bindings), self._eval(node.right, bindings))

        if isinstance(node, ast.UnaryOp):
            unary = UNARY_OPERATORS.get(type(node.op))
            if unary is None:
                raise ExpressionError(f"Unsupported operator: {type(node.op).__name__}")
            return unary(self._eval(node.operand, bindings))

        if isinstance(node, ast.Call):
            if not isinstance(node.func, ast.Name) or node.func.id not in self.functions:
                name = node.func.id if isinstance(node.func, ast.Name) else ast.dump(node.func)
                raise ExpressionError(f"Unknown function: {name}")
            if node.keywords:
                raise ExpressionError(f"Keyword arguments are not supported: {node.func.id}")
            args = [self._eval(arg, bindings) for arg in node.args]
            return self.functions[node.func.id](*args)

        raise ExpressionError(f"Unsupported expression component: {type(node).__name__}")
