"""
Dashboard file loading.

Dashboard definitions are YAML (JSON is accepted as a YAML subset):

    variables: [env]
    queries:
      errors: sum(rate(http_errors_total{env="{{env}}"}[5m]))
      requests: sum(rate(http_requests_total{env="{{env}}"}[5m]))
    panels:
      - title: Availability
        metrics:
          - id: error_ratio
            expression: errors / requests * 100
            dependencies: [errors, requests]
"""

from __future__ import annotations

from pathlib import Path

import structlog
import yaml

from quickdash.core.errors import ConfigurationError
from quickdash.models import DashboardConfig

logger = structlog.get_logger()


def load_dashboard(path: str | Path) -> DashboardConfig:
    """
    Load a dashboard definition from a YAML or JSON file.

    Args:
        path: Path to the dashboard file

    Returns:
        DashboardConfig, with ``{{variable}}`` tokens left in place

    Raises:
        ConfigurationError: If the file is missing, unparsable or malformed
    """
    file_path = Path(path)
    if not file_path.exists():
        raise ConfigurationError(
            f"Dashboard file not found: {file_path}", details={"path": str(file_path)}
        )

    try:
        with open(file_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in {file_path}: {e}", details={"path": str(file_path)}
        ) from e

    if data is None:
        raise ConfigurationError(f"Dashboard file is empty: {file_path}")

    config = DashboardConfig.from_dict(data)
    logger.debug(
        "loaded_dashboard",
        path=str(file_path),
        queries=len(config.queries),
        panels=len(config.panels),
    )
    return config


def save_dashboard(config: DashboardConfig, path: str | Path) -> None:
    """Write a dashboard definition as YAML."""
    target_path = Path(path)
    target_path.parent.mkdir(parents=True, exist_ok=True)

    with open(target_path, "w") as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)

    logger.info("saved_dashboard", path=str(target_path))
