"""Logging mixin shared by the certification services.

Every log line from MintingController and MintReconciliationService is
bound to the emitting service and component, and each operation adds its
own name plus the request correlation id so a single certification can be
followed from claim through confirmation.

Usage:
    class MintReconciliationService(LoggingMixin):
        def __init__(self, ...) -> None:
            ...
            self._init_logger(component="certification")

        async def sweep_stuck_mints(self, limit: int) -> ...:
            log = self._log_operation("sweep_stuck_mints", limit=limit)
            log.info("reconciliation_sweep_started")
"""

import structlog

from src.domain.models.caller_context import CallerContext
from src.infrastructure.observability.correlation import get_correlation_id


class LoggingMixin:
    """Binds service, component and per-operation context to structlog.

    Attributes:
        _log: Logger bound with service and component.
    """

    _log: structlog.BoundLogger

    def _init_logger(self, component: str = "certification") -> None:
        """Bind the service logger; call once from __init__."""
        self._log = structlog.get_logger().bind(
            service=self.__class__.__name__,
            component=component,
        )

    def _log_operation(
        self,
        operation: str,
        caller: CallerContext | None = None,
        **context: object,
    ) -> structlog.BoundLogger:
        """Logger for one operation.

        Args:
            operation: Operation name, e.g. "request_certification".
            caller: Caller whose identity is bound as caller_id; the service
                credential itself is never bound.
            **context: Extra fields such as asset_id or chain.
        """
        if caller is not None:
            context.setdefault("caller_id", caller.caller_id)
            context.setdefault("bearer_presented", caller.service_credentials is not None)
        return self._log.bind(
            operation=operation,
            correlation_id=get_correlation_id(),
            **context,
        )
