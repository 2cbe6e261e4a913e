"""Root test configuration."""

import asyncio
import logging
from typing import Mapping

import pytest
import structlog


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


class FakeQueryBackend:
    """
    In-memory query executor.

    Query text is looked up in ``values``; anything in ``failures`` raises.
    Tracks every call and the peak number of concurrent executions.
    """

    def __init__(
        self,
        values: Mapping[str, float],
        failures: Mapping[str, Exception] | None = None,
        delays: Mapping[str, float] | None = None,
        default_delay: float = 0.0,
    ) -> None:
        self.values = dict(values)
        self.failures = dict(failures or {})
        self.delays = dict(delays or {})
        self.default_delay = default_delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, query: str) -> float:
        self.calls.append(query)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(query, self.default_delay))
            if query in self.failures:
                raise self.failures[query]
            return self.values[query]
        finally:
            self.in_flight -= 1


@pytest.fixture
def backend_factory():
    """Build FakeQueryBackend instances."""
    return FakeQueryBackend
