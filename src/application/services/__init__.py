"""Application services - Use case orchestration.

Available services:
- MintingController: Certification requests through the status state machine
- MintReconciliationService: Resolves expired minting leases and fallback ids
- LedgerErrorClassifier: Maps ledger failures onto the certification taxonomy
- SystemTimeAuthority: Host clock time authority
"""

from src.application.services.ledger_error_classifier import LedgerErrorClassifier
from src.application.services.mint_reconciliation_service import (
    MintReconciliationService,
)
from src.application.services.minting_controller import MintingController
from src.application.services.time_authority_service import SystemTimeAuthority

__all__ = [
    "LedgerErrorClassifier",
    "MintReconciliationService",
    "MintingController",
    "SystemTimeAuthority",
]
