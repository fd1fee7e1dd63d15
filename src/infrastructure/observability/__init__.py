"""Structured logging and correlation ids for the certification service.

Usage:
    from src.infrastructure.observability import configure_structlog, correlation_scope

    configure_structlog(environment="production")

    with correlation_scope(incoming_id):
        ...
"""

from src.infrastructure.observability.correlation import (
    correlation_id_processor,
    correlation_scope,
    generate_correlation_id,
    get_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from src.infrastructure.observability.logging import (
    configure_structlog,
    redact_secrets_processor,
)

__all__: list[str] = [
    "configure_structlog",
    "correlation_id_processor",
    "correlation_scope",
    "generate_correlation_id",
    "get_correlation_id",
    "redact_secrets_processor",
    "reset_correlation_id",
    "set_correlation_id",
]
