"""Certifiable asset domain model.

This module defines the certification lifecycle for owner-scoped assets
that can be anchored on a ledger: identity samples (face, voice) and
content artifacts (clips, transcripts, blog posts).

Lifecycle Rules:
- Assets are created UNCERTIFIED by an upstream ingestion flow
- UNCERTIFIED -> MINTING when a certification request is accepted
- MINTING -> MINTED (terminal) or FAILED (retryable)
- FAILED -> MINTING on a caller-initiated retry
- Nothing returns to UNCERTIFIED, nothing leaves MINTED
- Certificate fields are set if and only if the asset is MINTED
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum


class AssetType(Enum):
    """Type of certifiable asset.

    Identity samples:
        FACE_IDENTITY: Face identity sample
        VOICE_IDENTITY: Voice identity sample

    Content artifacts:
        CLIP: Generated video clip
        TRANSCRIPT: Episode transcript
        BLOG_POST: Published blog post
    """

    FACE_IDENTITY = "face_identity"
    VOICE_IDENTITY = "voice_identity"
    CLIP = "clip"
    TRANSCRIPT = "transcript"
    BLOG_POST = "blog_post"

    @property
    def is_identity_sample(self) -> bool:
        """Whether this asset type is an identity sample."""
        return self in IDENTITY_SAMPLE_TYPES


IDENTITY_SAMPLE_TYPES: frozenset[AssetType] = frozenset(
    {AssetType.FACE_IDENTITY, AssetType.VOICE_IDENTITY}
)


class LedgerChain(Enum):
    """Supported ledgers for certificate anchoring."""

    POLYGON = "polygon"
    POLYGON_AMOY = "polygon_amoy"


class TokenIdSource(Enum):
    """Where a certificate's on-chain identifier came from.

    EVENT: Decoded from the certification event in the confirmed receipt.
    FALLBACK: Generated locally because no matching event was found.
        Fallback identifiers are pending reconfirmation against the ledger.
    """

    EVENT = "event"
    FALLBACK = "fallback"


class CertStatus(Enum):
    """Certification state of an asset.

    State Machine:
        UNCERTIFIED -> MINTING (request accepted)
        MINTING -> MINTED (ledger confirmed)
        MINTING -> FAILED (ledger interaction failed)
        FAILED -> MINTING (caller-initiated retry)

    Terminal States:
        MINTED is terminal; no transition ever leaves it.
    """

    UNCERTIFIED = "uncertified"
    MINTING = "minting"
    MINTED = "minted"
    FAILED = "failed"

    def is_terminal(self) -> bool:
        """Check if this state is terminal."""
        return self is CertStatus.MINTED

    def is_claimable(self) -> bool:
        """Check if a certification request may claim an asset in this state."""
        return self in CLAIMABLE_STATES

    def valid_transitions(self) -> frozenset[CertStatus]:
        """Get valid transitions from this state.

        Returns:
            Frozenset of states this state can transition to.
            Empty set for terminal states.
        """
        return CERT_STATUS_TRANSITIONS.get(self, frozenset())


CLAIMABLE_STATES: frozenset[CertStatus] = frozenset(
    {CertStatus.UNCERTIFIED, CertStatus.FAILED}
)

CERT_STATUS_TRANSITIONS: dict[CertStatus, frozenset[CertStatus]] = {
    CertStatus.UNCERTIFIED: frozenset({CertStatus.MINTING}),
    CertStatus.MINTING: frozenset({CertStatus.MINTED, CertStatus.FAILED}),
    CertStatus.FAILED: frozenset({CertStatus.MINTING}),
    CertStatus.MINTED: frozenset(),
}


@dataclass(frozen=True, eq=True)
class Certificate:
    """Ledger certificate issued for a minted asset.

    Attributes:
        chain: Ledger the certificate is anchored on.
        tx_hash: Hash of the confirmed certification transaction.
        token_id: Canonical on-chain identifier.
        explorer_url: Block explorer link for the transaction.
        contract_reference: Address of the certificate contract.
        token_id_source: Whether token_id was decoded or generated locally.
    """

    chain: LedgerChain
    tx_hash: str
    token_id: str
    explorer_url: str
    contract_reference: str | None = None
    token_id_source: TokenIdSource = TokenIdSource.EVENT

    def to_dict(self) -> dict[str, str | None]:
        """Serialize to the external certificate shape."""
        return {
            "chain": self.chain.value,
            "tx_hash": self.tx_hash,
            "token_id": self.token_id,
            "explorer_url": self.explorer_url,
            "contract_reference": self.contract_reference,
        }


@dataclass(frozen=True, eq=True)
class CertifiableAsset:
    """An owner-scoped record eligible for blockchain-anchored certification.

    Attributes:
        id: Opaque asset identifier.
        owner_id: Identifier of the recorded owner.
        asset_type: Identity-sample or content-artifact variant.
        cert_status: Current certification state.
        owner_wallet_address: Optional address the certificate is issued to.
        cert_chain: Ledger of the certificate (set when claimed or minted).
        cert_tx_hash: Confirmed transaction hash (MINTED only).
        cert_token_id: On-chain identifier (MINTED only).
        cert_token_id_source: Provenance of cert_token_id (MINTED only).
        cert_explorer_url: Explorer link (MINTED only).
        cert_contract_address: Contract the certificate was minted against.
        cert_pending_tx_hash: Broadcast tx hash while MINTING.
        cert_last_tx_hash: Broadcast tx hash of the attempt that failed
            (FAILED only); a retry checks it before submitting again.
        cert_lease_expires_at: End of the MINTING lease.
        cert_created_at: Set once, on the transition into MINTED.
        cert_updated_at: Set on every transition.
    """

    id: str
    owner_id: str
    asset_type: AssetType
    cert_status: CertStatus = field(default=CertStatus.UNCERTIFIED)
    owner_wallet_address: str | None = field(default=None)
    cert_chain: LedgerChain | None = field(default=None)
    cert_tx_hash: str | None = field(default=None)
    cert_token_id: str | None = field(default=None)
    cert_token_id_source: TokenIdSource | None = field(default=None)
    cert_explorer_url: str | None = field(default=None)
    cert_contract_address: str | None = field(default=None)
    cert_pending_tx_hash: str | None = field(default=None)
    cert_last_tx_hash: str | None = field(default=None)
    cert_lease_expires_at: datetime | None = field(default=None)
    cert_created_at: datetime | None = field(default=None)
    cert_updated_at: datetime | None = field(default=None)

    def __post_init__(self) -> None:
        """Validate the certificate-fields invariant."""
        certificate_fields = (
            self.cert_tx_hash,
            self.cert_token_id,
            self.cert_explorer_url,
        )
        if self.cert_status is CertStatus.MINTED:
            if any(value is None for value in certificate_fields):
                raise ValueError(
                    f"Asset {self.id} is minted but is missing certificate fields"
                )
            if self.cert_created_at is None:
                raise ValueError(f"Asset {self.id} is minted without cert_created_at")
        else:
            if any(value is not None for value in certificate_fields):
                raise ValueError(
                    f"Asset {self.id} carries certificate fields while "
                    f"{self.cert_status.value}"
                )
            if self.cert_created_at is not None:
                raise ValueError(
                    f"Asset {self.id} has cert_created_at while {self.cert_status.value}"
                )
        if (
            self.cert_status is not CertStatus.MINTING
            and self.cert_pending_tx_hash is not None
        ):
            raise ValueError(
                f"Asset {self.id} has a pending tx hash outside of minting"
            )
        if (
            self.cert_status is not CertStatus.FAILED
            and self.cert_last_tx_hash is not None
        ):
            status = self.cert_status.value
            raise ValueError(
                f"Asset {self.id} has a failed attempt hash while {status}"
            )

    @property
    def certificate(self) -> Certificate | None:
        """Return the issued certificate, or None if not minted."""
        if self.cert_status is not CertStatus.MINTED:
            return None
        assert self.cert_chain is not None
        assert self.cert_tx_hash is not None
        assert self.cert_token_id is not None
        assert self.cert_explorer_url is not None
        return Certificate(
            chain=self.cert_chain,
            tx_hash=self.cert_tx_hash,
            token_id=self.cert_token_id,
            explorer_url=self.cert_explorer_url,
            contract_reference=self.cert_contract_address,
            token_id_source=self.cert_token_id_source or TokenIdSource.EVENT,
        )

    def lease_expired(self, now: datetime) -> bool:
        """Whether the MINTING lease has lapsed at the given time."""
        return (
            self.cert_status is CertStatus.MINTING
            and self.cert_lease_expires_at is not None
            and self.cert_lease_expires_at <= now
        )

    def apply(self, update: CertStatusUpdate) -> CertifiableAsset:
        """Create a new asset with a status update applied.

        Enforces the transition matrix. Since CertifiableAsset is frozen,
        returns a new instance; field invariants are re-checked by
        __post_init__.

        Args:
            update: The status update to apply.

        Returns:
            New CertifiableAsset with the update applied.

        Raises:
            AssetAlreadyCertifiedError: If the asset is MINTED.
            InvalidCertStatusTransitionError: If the transition is not valid.
        """
        from src.domain.errors.state_transition import (
            AssetAlreadyCertifiedError,
            InvalidCertStatusTransitionError,
        )

        if self.cert_status.is_terminal():
            raise AssetAlreadyCertifiedError(asset_id=self.id)

        valid = self.cert_status.valid_transitions()
        if update.cert_status not in valid:
            raise InvalidCertStatusTransitionError(
                from_status=self.cert_status,
                to_status=update.cert_status,
                allowed_transitions=sorted(valid, key=lambda s: s.value),
            )

        certificate = update.certificate
        return replace(
            self,
            cert_status=update.cert_status,
            cert_chain=update.cert_chain or self.cert_chain,
            cert_tx_hash=certificate.tx_hash if certificate else None,
            cert_token_id=certificate.token_id if certificate else None,
            cert_token_id_source=certificate.token_id_source if certificate else None,
            cert_explorer_url=certificate.explorer_url if certificate else None,
            cert_contract_address=(
                certificate.contract_reference if certificate else self.cert_contract_address
            ),
            cert_pending_tx_hash=None,
            cert_last_tx_hash=update.last_tx_hash,
            cert_lease_expires_at=update.lease_expires_at,
            cert_created_at=update.updated_at if certificate else None,
            cert_updated_at=update.updated_at,
        )


@dataclass(frozen=True)
class CertStatusUpdate:
    """Fields written by a conditional status update.

    Attributes:
        cert_status: Target status.
        updated_at: Transition timestamp (becomes cert_updated_at).
        cert_chain: Ledger being used (set on claim).
        certificate: Certificate to persist (required for MINTED).
        lease_expires_at: MINTING lease end (required for MINTING).
        last_tx_hash: Hash broadcast by the failed attempt (FAILED only).
    """

    cert_status: CertStatus
    updated_at: datetime
    cert_chain: LedgerChain | None = None
    certificate: Certificate | None = None
    lease_expires_at: datetime | None = None
    last_tx_hash: str | None = None

    def __post_init__(self) -> None:
        """Validate the update is internally consistent."""
        if (self.cert_status is CertStatus.MINTED) != (self.certificate is not None):
            raise ValueError("A certificate is required exactly when minting completes")
        if self.cert_status is CertStatus.MINTING and self.lease_expires_at is None:
            raise ValueError("A minting claim requires a lease expiry")
        if self.cert_status is not CertStatus.MINTING and self.lease_expires_at is not None:
            raise ValueError("Only a minting claim carries a lease expiry")
        if self.cert_status is not CertStatus.FAILED and self.last_tx_hash is not None:
            raise ValueError("Only a failure carries the failed attempt hash")

    @classmethod
    def claim(
        cls, chain: LedgerChain, now: datetime, lease_expires_at: datetime
    ) -> CertStatusUpdate:
        """Build the update that claims an asset for minting."""
        return cls(
            cert_status=CertStatus.MINTING,
            updated_at=now,
            cert_chain=chain,
            lease_expires_at=lease_expires_at,
        )

    @classmethod
    def minted(cls, certificate: Certificate, now: datetime) -> CertStatusUpdate:
        """Build the update that records a confirmed certificate."""
        return cls(
            cert_status=CertStatus.MINTED,
            updated_at=now,
            cert_chain=certificate.chain,
            certificate=certificate,
        )

    @classmethod
    def failed(
        cls, now: datetime, last_tx_hash: str | None = None
    ) -> CertStatusUpdate:
        """Build the update that records a failed ledger interaction.

        Args:
            now: Transition timestamp.
            last_tx_hash: Hash the attempt broadcast, if it got that far.
        """
        return cls(
            cert_status=CertStatus.FAILED, updated_at=now, last_tx_hash=last_tx_hash
        )
