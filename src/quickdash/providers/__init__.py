"""Query execution backends."""

from quickdash.providers.prometheus import PrometheusProviderError, PrometheusQueryExecutor

__all__ = ["PrometheusProviderError", "PrometheusQueryExecutor"]
