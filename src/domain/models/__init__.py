"""Domain models for asset certification."""

from src.domain.models.audit_entry import AuditAck, AuditAction, AuditLogEntry
from src.domain.models.caller_context import AuthorizationDecision, CallerContext
from src.domain.models.certifiable_asset import (
    CERT_STATUS_TRANSITIONS,
    AssetType,
    Certificate,
    CertifiableAsset,
    CertStatus,
    CertStatusUpdate,
    LedgerChain,
    TokenIdSource,
)
from src.domain.models.ledger_receipt import (
    LedgerReceipt,
    TokenIdFound,
    TokenIdNotFound,
    TokenIdResult,
    TransactionStatus,
)

__all__ = [
    "AssetType",
    "AuditAck",
    "AuditAction",
    "AuditLogEntry",
    "AuthorizationDecision",
    "CERT_STATUS_TRANSITIONS",
    "CallerContext",
    "CertStatus",
    "CertStatusUpdate",
    "Certificate",
    "CertifiableAsset",
    "LedgerChain",
    "LedgerReceipt",
    "TokenIdFound",
    "TokenIdNotFound",
    "TokenIdResult",
    "TokenIdSource",
    "TransactionStatus",
]
