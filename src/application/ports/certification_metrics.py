"""Certification metrics port."""

from __future__ import annotations

from typing import Protocol


class CertificationMetricsProtocol(Protocol):
    """Counters and timings emitted by the certification flow."""

    def record_request(self, outcome: str) -> None:
        """Count a finished certification request by outcome label."""
        ...

    def observe_confirmation(self, chain: str, seconds: float) -> None:
        """Record how long a ledger confirmation took."""
        ...

    def record_fallback_identifier(self, chain: str) -> None:
        """Count a certificate minted with a locally generated identifier."""
        ...

    def record_reconciliation(self, resolution: str) -> None:
        """Count a reconciliation sweep resolution."""
        ...
