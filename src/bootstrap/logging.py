"""Bootstrap wiring for logging configuration."""

from __future__ import annotations

import os

from src.infrastructure.observability import configure_structlog as _configure_structlog


def configure_logging(environment: str | None = None) -> None:
    """Configure structlog for the given environment.

    Falls back to the ENVIRONMENT variable, then to "development".
    """
    _configure_structlog(
        environment=environment or os.environ.get("ENVIRONMENT", "development")
    )


__all__ = ["configure_logging"]
