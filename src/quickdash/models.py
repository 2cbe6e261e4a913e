"""
Data model for dashboards and their computed results.

A dashboard is a map of raw queries plus an ordered list of panels; each
panel groups metrics whose expressions reference query results and/or other
metrics by identifier. Identifiers of queries and metrics share one namespace.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

from quickdash.core.errors import ConfigurationError, DuplicateAssignmentError

QueryMap = Mapping[str, str]
Variables = Mapping[str, Any]


def _require_str(data: Mapping[str, Any], key: str, where: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise ConfigurationError(
            f"{where}: '{key}' must be a non-empty string",
            details={"field": key},
        )
    return value


@dataclass(frozen=True)
class Metric:
    """A derived value computed from an expression over other identifiers."""

    id: str
    expression: str
    dependencies: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Metric:
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Metric definition must be a mapping, got {type(data).__name__}")
        metric_id = _require_str(data, "id", "metric")
        expression = _require_str(data, "expression", f"metric '{metric_id}'")
        dependencies = data.get("dependencies", [])
        if not isinstance(dependencies, (list, tuple)) or not all(
            isinstance(dep, str) for dep in dependencies
        ):
            raise ConfigurationError(
                f"metric '{metric_id}': 'dependencies' must be a list of identifiers",
                details={"metric": metric_id},
            )
        return cls(id=metric_id, expression=expression, dependencies=tuple(dependencies))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "expression": self.expression,
            "dependencies": list(self.dependencies),
        }


@dataclass(frozen=True)
class Panel:
    """A titled group of metrics; the unit of caching and streaming."""

    title: str
    metrics: tuple[Metric, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Panel:
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Panel definition must be a mapping, got {type(data).__name__}")
        title = _require_str(data, "title", "panel")
        metrics = data.get("metrics", [])
        if not isinstance(metrics, list):
            raise ConfigurationError(
                f"panel '{title}': 'metrics' must be a list",
                details={"panel": title},
            )
        return cls(title=title, metrics=tuple(Metric.from_dict(m) for m in metrics))

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "metrics": [m.to_dict() for m in self.metrics]}

    @property
    def dependencies(self) -> list[str]:
        """Dependency identifiers of all metrics, first occurrence order."""
        seen: dict[str, None] = {}
        for metric in self.metrics:
            for dep in metric.dependencies:
                seen.setdefault(dep, None)
        return list(seen)


@dataclass(frozen=True)
class DashboardConfig:
    """Queries, panels and the variable names a dashboard template requires."""

    queries: Mapping[str, str] = field(default_factory=dict)
    panels: tuple[Panel, ...] = ()
    variables: tuple[str, ...] | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DashboardConfig:
        if not isinstance(data, Mapping):
            raise ConfigurationError("Dashboard definition must be a mapping")

        queries = data.get("queries") or {}
        if not isinstance(queries, Mapping) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in queries.items()
        ):
            raise ConfigurationError("'queries' must map identifiers to query strings")

        panels = data.get("panels") or []
        if not isinstance(panels, list):
            raise ConfigurationError("'panels' must be a list")

        variables = data.get("variables")
        if variables is not None:
            if not isinstance(variables, list) or not all(isinstance(v, str) for v in variables):
                raise ConfigurationError("'variables' must be a list of names")
            variables = tuple(variables)

        return cls(
            queries=dict(queries),
            panels=tuple(Panel.from_dict(p) for p in panels),
            variables=variables,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "queries": dict(self.queries),
            "panels": [p.to_dict() for p in self.panels],
        }
        if self.variables is not None:
            data["variables"] = list(self.variables)
        return data


@dataclass(frozen=True)
class MetricValue:
    """A resolved (identifier, value) pair, either a raw query or a metric."""

    id: str
    value: float

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "value": self.value}


# Query results and metric results have the same shape.
QueryValue = MetricValue


@dataclass
class PanelResult:
    """Ordered values produced for one panel."""

    panel: str
    results: list[MetricValue] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"panel": self.panel, "results": [r.to_dict() for r in self.results]}

    def as_mapping(self) -> dict[str, float]:
        return {r.id: r.value for r in self.results}


class ResolvedValues:
    """
    Identifier -> value bindings for one dashboard execution.

    Values are shared by every panel of the execution, so an identifier
    resolved while processing one panel is visible to all later panels.
    An identifier can only be assigned once.
    """

    def __init__(self, initial: Mapping[str, float] | None = None) -> None:
        self._values: dict[str, float] = {}
        for identifier, value in (initial or {}).items():
            self.assign(identifier, value)

    def assign(self, identifier: str, value: float) -> None:
        if identifier in self._values:
            raise DuplicateAssignmentError(identifier)
        self._values[identifier] = value

    def get(self, identifier: str, default: float | None = None) -> float | None:
        return self._values.get(identifier, default)

    def snapshot(self) -> dict[str, float]:
        """Copy of current bindings, safe to hand to an evaluator."""
        return dict(self._values)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._values

    def __getitem__(self, identifier: str) -> float:
        return self._values[identifier]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ResolvedValues({self._values!r})"


@dataclass
class ExecutionContext:
    """State owned by a single dashboard execution."""

    values: ResolvedValues = field(default_factory=ResolvedValues)
    panel_cache: dict[str, PanelResult] = field(default_factory=dict)
    failed_queries: dict[str, str] = field(default_factory=dict)
    cancel_event: asyncio.Event | None = None

    def record_failure(self, query_id: str, error: BaseException) -> None:
        self.failed_queries[query_id] = str(error) or type(error).__name__

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()
