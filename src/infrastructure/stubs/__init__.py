"""Infrastructure stubs for development and testing.

This module provides stub implementations of infrastructure ports
for use in development and testing environments.

Available stubs:
- AssetStoreStub: In-memory asset storage with lock-simulated CAS
- AuditLogStub: In-memory append-only audit log, can simulate an outage
- LedgerClientStub: Deterministic ledger with injectable failures and a
  hold event for interleaving concurrent requests

WARNING: These stubs are NOT for production use.
Production implementations are in src/infrastructure/adapters/.
"""

from src.infrastructure.stubs.asset_store_stub import AssetStoreStub
from src.infrastructure.stubs.audit_log_stub import AuditLogStub
from src.infrastructure.stubs.ledger_client_stub import (
    STUB_CONTRACT_ADDRESS,
    STUB_SIGNER_ADDRESS,
    CertifyCall,
    LedgerClientStub,
)

__all__: list[str] = [
    "STUB_CONTRACT_ADDRESS",
    "STUB_SIGNER_ADDRESS",
    "AssetStoreStub",
    "AuditLogStub",
    "CertifyCall",
    "LedgerClientStub",
]
