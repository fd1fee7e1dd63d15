"""Certification DTOs for application layer.

These are returned by the MintingController and mapped to API Pydantic
models by the routes.
"""

from dataclasses import dataclass

from src.domain.models.certifiable_asset import Certificate, CertifiableAsset


@dataclass(frozen=True)
class CertificationResultDTO:
    """Outcome of a successful certification request.

    Attributes:
        asset: The asset after the request (always MINTED).
        certificate: The certificate anchored on the ledger.
        already_certified: True when no ledger call was made because the
            asset was already minted.
    """

    asset: CertifiableAsset
    certificate: Certificate
    already_certified: bool = False


@dataclass(frozen=True)
class ReconciliationReportDTO:
    """Summary of one reconciliation sweep.

    Attributes:
        examined: Expired minting assets looked at.
        minted: Resolved to minted (transaction confirmed).
        failed: Resolved to failed (reverted, unknown, or never broadcast).
        extended: Lease extended (transaction still pending).
        skipped: Left as is (resolved concurrently or ledger unreachable).
    """

    examined: int = 0
    minted: int = 0
    failed: int = 0
    extended: int = 0
    skipped: int = 0


@dataclass(frozen=True)
class ReconfirmationReportDTO:
    """Summary of one fallback identifier reconfirmation pass.

    Attributes:
        examined: Minted assets with fallback identifiers looked at.
        reconfirmed: Identifiers replaced with the decoded on-chain value.
        unresolved: Identifiers that still could not be decoded.
    """

    examined: int = 0
    reconfirmed: int = 0
    unresolved: int = 0
