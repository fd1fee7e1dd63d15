"""Bootstrap wiring for operational metrics."""

from __future__ import annotations

from src.infrastructure.monitoring.certification_metrics import (
    METRICS_CONTENT_TYPE,
    CertificationMetricsCollector,
    generate_metrics,
    get_certification_metrics,
)


class PrometheusMetricsExporter:
    """Prometheus metrics exporter implementation."""

    @property
    def content_type(self) -> str:
        return METRICS_CONTENT_TYPE

    def generate_metrics(self) -> bytes:
        return generate_metrics()


_metrics_exporter: PrometheusMetricsExporter | None = None


def get_metrics_collector() -> CertificationMetricsCollector:
    """Get the metrics collector instance."""
    return get_certification_metrics()


def get_metrics_exporter() -> PrometheusMetricsExporter:
    """Get the metrics exporter instance."""
    global _metrics_exporter
    if _metrics_exporter is None:
        _metrics_exporter = PrometheusMetricsExporter()
    return _metrics_exporter
