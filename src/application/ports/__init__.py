"""Application ports - Abstract interfaces for infrastructure adapters.

This module defines the contracts that infrastructure adapters must implement.
Ports enable dependency inversion and make the application layer testable.

Available ports:
- AssetStoreProtocol: Certifiable asset persistence with CAS status updates
- AccessControlProtocol: Owner / service-identity authorization
- AuditLogProtocol: Append-only certification audit trail
- LedgerClientProtocol: Certificate anchoring on a ledger
- CertificationMetricsProtocol: Request and reconciliation metrics
- TimeAuthorityProtocol: Injected clock
"""

from src.application.ports.access_control import AccessControlProtocol
from src.application.ports.asset_store import AssetStoreProtocol
from src.application.ports.audit_log import AuditLogProtocol
from src.application.ports.certification_metrics import CertificationMetricsProtocol
from src.application.ports.ledger_client import LedgerClientProtocol, OnSubmitted
from src.application.ports.time_authority import TimeAuthorityProtocol

__all__: list[str] = [
    "AccessControlProtocol",
    "AssetStoreProtocol",
    "AuditLogProtocol",
    "CertificationMetricsProtocol",
    "LedgerClientProtocol",
    "OnSubmitted",
    "TimeAuthorityProtocol",
]
