"""
Shared metrics configuration for the BaaS client.
"""

from prometheus_client import Counter, Histogram, Gauge, Info, CollectorRegistry
from typing import Dict, Any, Optional


class MetricsCollector:
    """Centralized metrics collector for the client core.

    Each collector owns a CollectorRegistry unless one is supplied, so several
    clients (and test cases) can live in one process without name clashes.
    """

    def __init__(self, service_name: str = "baas_client", registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up client metrics."""

        self._metrics["client_info"] = Info(
            "client_info",
            "Client information",
            registry=self.registry
        )
        self._metrics["client_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        # Transport metrics
        self._metrics["transport_requests_total"] = Counter(
            "transport_requests_total",
            "Total backend requests",
            ["operation", "method", "outcome"],
            registry=self.registry
        )

        self._metrics["transport_request_duration_seconds"] = Histogram(
            "transport_request_duration_seconds",
            "Backend request duration in seconds",
            ["operation"],
            registry=self.registry
        )

        # Normalization metrics
        self._metrics["normalization_fallbacks_total"] = Counter(
            "normalization_fallbacks_total",
            "Responses returned unchanged because an unwrap step failed",
            ["operation"],
            registry=self.registry
        )

        # Cache metrics
        self._metrics["cache_events_total"] = Counter(
            "cache_events_total",
            "Cache layer events",
            ["event", "operation"],
            registry=self.registry
        )

        self._metrics["cache_entries"] = Gauge(
            "cache_entries",
            "Tracked cache entries",
            registry=self.registry
        )

        # Error metrics
        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def get_sample_value(self, name: str, **labels) -> float:
        """Read a sample from this collector's registry, 0.0 when absent."""
        value = self.registry.get_sample_value(name, labels)
        return value if value is not None else 0.0

    def record_transport_request(self, operation: str, method: str, outcome: str, duration: float):
        """Record backend request metrics."""
        self._metrics["transport_requests_total"].labels(
            operation=operation,
            method=method,
            outcome=outcome
        ).inc()

        self._metrics["transport_request_duration_seconds"].labels(
            operation=operation
        ).observe(duration)

    def record_normalization_fallback(self, operation: str):
        """Record a normalization fallback."""
        self._metrics["normalization_fallbacks_total"].labels(operation=operation).inc()

    def record_cache_event(self, event: str, operation: str):
        """Record a cache event (hit, miss, coalesced, refetch, invalidated, evicted)."""
        self._metrics["cache_events_total"].labels(event=event, operation=operation).inc()

    def set_cache_entries(self, count: int):
        """Set the number of tracked cache entries."""
        self._metrics["cache_entries"].set(count)

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()


def get_metrics_collector(service_name: str = "baas_client", registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for the client."""
    return MetricsCollector(service_name, registry)
