"""Infrastructure monitoring components.

Prometheus metrics collection for certification and the API.
"""

from src.infrastructure.monitoring.certification_metrics import (
    METRICS_CONTENT_TYPE,
    CertificationMetricsCollector,
    generate_metrics,
    get_certification_metrics,
    reset_certification_metrics,
)

__all__ = [
    "METRICS_CONTENT_TYPE",
    "CertificationMetricsCollector",
    "generate_metrics",
    "get_certification_metrics",
    "reset_certification_metrics",
]
