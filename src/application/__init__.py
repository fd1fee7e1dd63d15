"""
Application layer - Use cases and orchestration for asset certification.

This layer contains:
- Use case implementations (minting controller, reconciliation)
- Port definitions (abstract interfaces for infrastructure)
- DTOs returned to the API layer

IMPORT RULES:
- CAN import from: domain, infrastructure.observability
- CANNOT import from: other infrastructure, api, bootstrap, config
"""

from src.application.ports import (
    AccessControlProtocol,
    AssetStoreProtocol,
    AuditLogProtocol,
    LedgerClientProtocol,
)

__all__: list[str] = [
    "AccessControlProtocol",
    "AssetStoreProtocol",
    "AuditLogProtocol",
    "LedgerClientProtocol",
]
