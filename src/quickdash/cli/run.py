"""CLI command for executing a dashboard against Prometheus."""

from __future__ import annotations

import asyncio
import json
from typing import Sequence

from quickdash.cli import ux
from quickdash.config.loader import load_dashboard
from quickdash.config.settings import get_settings
from quickdash.core.errors import main_with_error_handling
from quickdash.engine import DashboardEngine, QueryExecutor
from quickdash.models import DashboardConfig, PanelResult
from quickdash.parser import parse_variable_assignments, substitute_variables
from quickdash.providers.prometheus import PrometheusQueryExecutor


async def _execute(
    engine: DashboardEngine,
    config: DashboardConfig,
    stream: bool,
    output_format: str,
) -> list[PanelResult]:
    if not stream:
        results = await engine.run_dashboard(config)
        if output_format == "text":
            for result in results:
                ux.print_panel_result(result)
        return results

    results = []
    async for result in engine.stream_dashboard(config):
        results.append(result)
        if output_format == "text":
            ux.print_panel_result(result)
        else:
            print(json.dumps(result.to_dict()), flush=True)
    return results


@main_with_error_handling()
def run_command(
    dashboard_file: str,
    variables: Sequence[str] | None = None,
    prometheus_url: str | None = None,
    max_concurrency: int | None = None,
    stream: bool = False,
    output_format: str = "text",
    execute_query: QueryExecutor | None = None,
) -> int:
    """Execute a dashboard file and print its panel results.

    Args:
        dashboard_file: Path to dashboard YAML/JSON file
        variables: ``NAME=VALUE`` assignments for template variables
        prometheus_url: Prometheus base URL (default from settings)
        max_concurrency: Query concurrency ceiling (default from settings)
        stream: Print each panel as soon as it is computed
        output_format: "text" (tables) or "json"
        execute_query: Query executor override (default: Prometheus)

    Returns:
        Exit code (0 for success)
    """
    settings = get_settings()

    template = load_dashboard(dashboard_file)
    config = substitute_variables(template, parse_variable_assignments(variables)).unwrap()

    if execute_query is None:
        execute_query = PrometheusQueryExecutor(
            prometheus_url or settings.prometheus_url,
            username=settings.prometheus_username,
            password=settings.prometheus_password,
            timeout=settings.http_timeout,
        )

    engine = DashboardEngine(
        execute_query,
        max_concurrent_queries=max_concurrency or settings.max_concurrent_queries,
    )

    if output_format == "text":
        ux.header(f"Dashboard: {dashboard_file}")

    results = asyncio.run(_execute(engine, config, stream, output_format))

    if output_format == "json" and not stream:
        print(json.dumps([r.to_dict() for r in results], indent=2))
    elif output_format == "text":
        ux.success(f"Computed {len(results)} panel(s)")
    return 0
