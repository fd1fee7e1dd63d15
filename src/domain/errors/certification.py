"""Certification error taxonomy.

Every failure a certification request can surface to its caller is one of
the classes below. Each carries a ``stage`` (where in the flow it happened)
and a ``code`` (what happened), and serializes to the external failure
payload via ``to_payload()``.

Stages:
- auth: caller is not allowed to certify the asset
- config: signer/contract/RPC configuration is unusable
- load: asset does not exist or is not visible to the caller
- claim: another request holds the asset in minting
- mint: the ledger interaction failed
- unknown: anything not otherwise classified
"""

from __future__ import annotations

from typing import Any, ClassVar

from src.domain.exceptions import CertificationDomainError


class CertificationError(CertificationDomainError):
    """Base exception for all caller-facing certification failures.

    Attributes:
        code: Machine-readable failure code.
        message: Human-readable message.
        error: Short error summary (defaults to the message).
    """

    stage: ClassVar[str] = "unknown"
    default_code: ClassVar[str] = "UNKNOWN_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        error: str | None = None,
    ) -> None:
        self.code = code or self.default_code
        self.message = message
        self.error = error or message
        super().__init__(message)

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the external failure shape."""
        return {
            "success": False,
            "stage": self.stage,
            "code": self.code,
            "error": self.error,
            "message": self.message,
        }


class CertificationAuthorizationError(CertificationError):
    """Caller is neither the recorded owner nor the trusted service."""

    stage = "auth"
    default_code = "NOT_AUTHORIZED"

    def __init__(self, message: str = "Not authorized to certify this asset") -> None:
        super().__init__(message, error="Not authorized")


class ConfigurationError(CertificationError):
    """Signer, contract, or RPC configuration is missing or malformed.

    Raised before any state mutation when detected in pre-flight.
    """

    stage = "config"
    default_code = "MISSING_SIGNING_KEY"

    MISSING_SIGNING_KEY: ClassVar[str] = "MISSING_SIGNING_KEY"
    MALFORMED_SIGNING_KEY: ClassVar[str] = "MALFORMED_SIGNING_KEY"
    MALFORMED_CONTRACT_ADDRESS: ClassVar[str] = "MALFORMED_CONTRACT_ADDRESS"
    MISSING_RPC_ENDPOINT: ClassVar[str] = "MISSING_RPC_ENDPOINT"
    UNSUPPORTED_CHAIN: ClassVar[str] = "UNSUPPORTED_CHAIN"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message, code=code, error="Blockchain configuration error")


class AssetNotFoundError(CertificationError):
    """Asset does not exist or is outside the caller's visibility."""

    stage = "load"
    default_code = "ASSET_NOT_FOUND"

    def __init__(self, asset_id: str) -> None:
        self.asset_id = asset_id
        super().__init__(f"Asset {asset_id} not found", error="Asset not found")


class CertificationConflictError(CertificationError):
    """Another request is already minting this asset."""

    stage = "claim"
    default_code = "MINT_IN_PROGRESS"

    def __init__(self, asset_id: str) -> None:
        self.asset_id = asset_id
        super().__init__(
            "Certification already in progress",
            error=f"Asset {asset_id} is already being certified",
        )


class TransactionError(CertificationError):
    """The ledger interaction failed after the asset was claimed."""

    stage = "mint"
    default_code = "TX_BROADCAST_FAILED"

    TX_REVERTED: ClassVar[str] = "TX_REVERTED"
    TX_UNDERPRICED: ClassVar[str] = "TX_UNDERPRICED"
    TX_NONCE_COLLISION: ClassVar[str] = "TX_NONCE_COLLISION"
    TX_INSUFFICIENT_FUNDS: ClassVar[str] = "TX_INSUFFICIENT_FUNDS"
    TX_BROADCAST_FAILED: ClassVar[str] = "TX_BROADCAST_FAILED"
    TX_CONFIRMATION_TIMEOUT: ClassVar[str] = "TX_CONFIRMATION_TIMEOUT"

    def __init__(
        self, message: str, code: str | None = None, tx_hash: str | None = None
    ) -> None:
        self.tx_hash = tx_hash
        super().__init__(message, code=code, error="Blockchain transaction failed")


class UnclassifiedCertificationError(CertificationError):
    """A failure that matched no known category."""

    stage = "unknown"
    default_code = "UNKNOWN_ERROR"

    def __init__(self, message: str = "Unexpected certification failure") -> None:
        super().__init__(message, error="Certification failed")
