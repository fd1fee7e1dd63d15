"""Certification API request/response models.

Pydantic models for the certification endpoints. Error responses carry
the failure stage and a stable code so that clients can branch on them
without parsing messages.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, Field, PlainSerializer

# ISO 8601 with Z suffix
DateTimeWithZ = Annotated[
    datetime,
    PlainSerializer(
        lambda v: v.isoformat().replace("+00:00", "Z") if v else None, return_type=str
    ),
]


class ChainEnum(str, Enum):
    """Ledgers a certificate can be anchored on."""

    POLYGON = "polygon"
    POLYGON_AMOY = "polygon_amoy"


class CertificationRequest(BaseModel):
    """Request to certify an asset.

    Attributes:
        asset_id: Asset to certify.
        chain: Ledger to certify on. The configured default when omitted.
    """

    asset_id: str = Field(..., min_length=1, max_length=255)
    chain: ChainEnum | None = None


class CertificateModel(BaseModel):
    """Ledger certificate of an asset."""

    chain: str
    tx_hash: str
    token_id: str
    explorer_url: str
    contract_reference: str | None = None


class AssetCertificationModel(BaseModel):
    """Certification-relevant view of an asset."""

    id: str
    owner_id: str
    asset_type: str
    cert_status: str
    cert_chain: str | None = None
    cert_tx_hash: str | None = None
    cert_token_id: str | None = None
    cert_token_id_source: str | None = None
    cert_explorer_url: str | None = None
    cert_contract_address: str | None = None
    cert_pending_tx_hash: str | None = None
    cert_last_tx_hash: str | None = None
    cert_lease_expires_at: DateTimeWithZ | None = None
    cert_created_at: DateTimeWithZ | None = None
    cert_updated_at: DateTimeWithZ | None = None


class CertificationResponse(BaseModel):
    """Successful certification result."""

    success: Literal[True] = True
    already_certified: bool
    asset: AssetCertificationModel
    certificate: CertificateModel


class CertificationStatusResponse(BaseModel):
    """Current certification state of an asset."""

    success: Literal[True] = True
    asset: AssetCertificationModel
    certificate: CertificateModel | None = None


class CertificationErrorResponse(BaseModel):
    """Failed certification request.

    Attributes:
        stage: Where the request failed (auth, load, claim, config, mint, unknown).
        code: Stable machine-readable error code.
        error: Short category of the failure.
        message: Human-readable explanation.
    """

    success: Literal[False] = False
    stage: str
    code: str
    error: str
    message: str
