"""Prometheus metrics for certification.

Collectors:
- certification_requests_total{outcome}: finished requests by outcome
- ledger_confirmation_seconds{chain}: submit-to-confirmation latency
- certification_fallback_identifiers_total{chain}: locally generated token ids
- minting_reconciliations_total{resolution}: reconciliation sweep resolutions
- http_requests_total{method,endpoint,status}: API requests
- http_request_duration_seconds{method,endpoint}: API latency
"""

import os
import threading

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Content type for Prometheus metrics endpoint
METRICS_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"

_collector_lock = threading.Lock()

# Block inclusion takes seconds to minutes
CONFIRMATION_BUCKETS = (1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0, 120.0, 300.0)
HTTP_BUCKETS = (0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 120.0)


class CertificationMetricsCollector:
    """Collects certification and API Prometheus metrics.

    Implements CertificationMetricsProtocol.

    Attributes:
        certification_requests_total: Counter of requests by outcome.
        ledger_confirmation_seconds: Histogram of confirmation latency.
        certification_fallback_identifiers_total: Counter of fallback ids.
        minting_reconciliations_total: Counter of sweep resolutions.
        http_requests_total: Counter of API requests.
        http_request_duration_seconds: Histogram of API latency.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize collectors.

        Args:
            registry: Optional custom registry for testing isolation.
        """
        self._registry = registry or CollectorRegistry()
        self._environment = os.environ.get("ENVIRONMENT", "development")

        self.certification_requests_total = Counter(
            name="certification_requests_total",
            documentation="Finished certification requests by outcome",
            labelnames=["environment", "outcome"],
            registry=self._registry,
        )
        self.ledger_confirmation_seconds = Histogram(
            name="ledger_confirmation_seconds",
            documentation="Seconds from submission to ledger confirmation",
            labelnames=["environment", "chain"],
            buckets=CONFIRMATION_BUCKETS,
            registry=self._registry,
        )
        self.certification_fallback_identifiers_total = Counter(
            name="certification_fallback_identifiers_total",
            documentation="Certificates minted with a locally generated identifier",
            labelnames=["environment", "chain"],
            registry=self._registry,
        )
        self.minting_reconciliations_total = Counter(
            name="minting_reconciliations_total",
            documentation="Expired minting leases resolved by reconciliation",
            labelnames=["environment", "resolution"],
            registry=self._registry,
        )
        self.http_requests_total = Counter(
            name="http_requests_total",
            documentation="Total HTTP requests",
            labelnames=["environment", "method", "endpoint", "status"],
            registry=self._registry,
        )
        self.http_request_duration_seconds = Histogram(
            name="http_request_duration_seconds",
            documentation="HTTP request duration in seconds",
            labelnames=["environment", "method", "endpoint"],
            buckets=HTTP_BUCKETS,
            registry=self._registry,
        )

    def record_request(self, outcome: str) -> None:
        self.certification_requests_total.labels(
            environment=self._environment, outcome=outcome
        ).inc()

    def observe_confirmation(self, chain: str, seconds: float) -> None:
        self.ledger_confirmation_seconds.labels(
            environment=self._environment, chain=chain
        ).observe(seconds)

    def record_fallback_identifier(self, chain: str) -> None:
        self.certification_fallback_identifiers_total.labels(
            environment=self._environment, chain=chain
        ).inc()

    def record_reconciliation(self, resolution: str) -> None:
        self.minting_reconciliations_total.labels(
            environment=self._environment, resolution=resolution
        ).inc()

    def observe_http_request(
        self, method: str, endpoint: str, status: int, seconds: float
    ) -> None:
        """Record one API request."""
        self.http_requests_total.labels(
            environment=self._environment,
            method=method,
            endpoint=endpoint,
            status=str(status),
        ).inc()
        self.http_request_duration_seconds.labels(
            environment=self._environment, method=method, endpoint=endpoint
        ).observe(seconds)

    def get_registry(self) -> CollectorRegistry:
        """Get the Prometheus registry."""
        return self._registry


_metrics_collector: CertificationMetricsCollector | None = None


def get_certification_metrics() -> CertificationMetricsCollector:
    """Get or create the process-wide metrics collector."""
    global _metrics_collector
    if _metrics_collector is None:
        with _collector_lock:
            if _metrics_collector is None:
                _metrics_collector = CertificationMetricsCollector()
    return _metrics_collector


def generate_metrics() -> bytes:
    """Render all metrics in Prometheus exposition format."""
    return generate_latest(get_certification_metrics().get_registry())


def reset_certification_metrics() -> None:
    """Reset the process-wide collector (for testing)."""
    global _metrics_collector
    with _collector_lock:
        _metrics_collector = None
