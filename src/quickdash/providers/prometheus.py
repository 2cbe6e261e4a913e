"""
Prometheus query executor.

Executes instant PromQL queries and reduces each result to a single number,
so it can be injected into DashboardEngine as ``execute_query``.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any

import httpx

from quickdash.core.errors import ProviderError

DEFAULT_USER_AGENT = "quickdash-prometheus/0.1.0"


class PrometheusProviderError(ProviderError):
    """Raised when Prometheus returns an error or no usable value."""


class PrometheusQueryExecutor:
    """Async callable turning a PromQL query into a single float."""

    def __init__(
        self,
        url: str,
        *,
        username: str | None = None,
        password: str | None = None,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._base_url = url.rstrip("/")
        self._auth = httpx.BasicAuth(username, password) if username and password else None
        self._timeout = timeout
        self._user_agent = user_agent

    async def __call__(self, query: str) -> float:
        return await self.query_value(query)

    async def query(self, query: str, time: datetime | None = None) -> dict[str, Any]:
        """
        Execute instant query at a specific time.

        Args:
            query: PromQL query string
            time: Query evaluation time (defaults to now)

        Returns:
            Raw response payload from Prometheus
        """
        params: dict[str, Any] = {"query": query}

        if time is not None:
            params["time"] = time.timestamp()

        return await self._request("GET", "/api/v1/query", params=params)

    async def query_value(self, query: str, time: datetime | None = None) -> float:
        """
        Execute a query expected to produce a single sample.

        Scalar results and the first element of a vector result are accepted.

        Raises:
            PrometheusProviderError: On API/HTTP errors, empty results or
                non-numeric samples
        """
        result = await self.query(query, time)

        data = result.get("data", {})
        result_type = data.get("resultType")
        result_data = data.get("result", [])

        if result_type == "scalar":
            value_data = result_data
        elif not result_data:
            raise PrometheusProviderError(
                "Query returned no data", details={"query": query}
            )
        else:
            value_data = result_data[0].get("value", [])

        if len(value_data) < 2:
            raise PrometheusProviderError(
                "Query result has no sample value", details={"query": query}
            )

        try:
            value = float(value_data[1])
        except (ValueError, TypeError) as exc:
            raise PrometheusProviderError(
                f"Non-numeric sample value: {value_data[1]!r}", details={"query": query}
            ) from exc

        if math.isnan(value):
            raise PrometheusProviderError("Query returned NaN", details={"query": query})
        return value

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Execute HTTP request to Prometheus."""
        url = f"{self._base_url}{path}"
        headers = {"User-Agent": self._user_agent}

        try:
            async with httpx.AsyncClient(timeout=self._timeout, auth=self._auth) as client:
                resp = await client.request(method, url, headers=headers, params=params)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as exc:
            raise PrometheusProviderError(str(exc)) from exc
        except ValueError as exc:
            raise PrometheusProviderError(f"Invalid JSON from Prometheus: {exc}") from exc

        # Check Prometheus API status
        if data.get("status") != "success":
            error = data.get("error", "Unknown error")
            raise PrometheusProviderError(f"Prometheus API error: {error}")

        return data
