import logging
import sys

import structlog


def configure_logging(level: int | str = logging.INFO, json_logs: bool | None = None) -> None:
    """Configure the structlog/standard logging bridge.

    Logs go to stderr so that ``quickdash run --format json`` keeps stdout
    machine-readable. JSON rendering is used unless stderr is a terminal.
    """

    if isinstance(level, str):
        level = level.upper()
    if json_logs is None:
        json_logs = not sys.stderr.isatty()

    renderer = (
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr)
