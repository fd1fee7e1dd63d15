"""Asset store port.

Defines the storage contract for certifiable assets. The persisted
``cert_status`` is the only per-asset mutex in the certification flow, so
stores MUST implement ``conditional_update`` as a single atomic
compare-and-set.

Rules:
1. FAIL LOUD - Stores raise on errors, they never return partial writes
2. CAS FOR STATUS - Every status change goes through conditional_update()
3. NO LOCKS ACROSS CALLS - No transaction may span a ledger interaction
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.domain.models.certifiable_asset import (
    CertifiableAsset,
    CertStatus,
    CertStatusUpdate,
)


class AssetStoreProtocol(Protocol):
    """Protocol for certifiable asset persistence.

    Implementations may use PostgreSQL, in-memory storage, or other
    backends.

    Methods:
        get: Load an asset scoped to a visibility scope
        conditional_update: Atomic compare-and-set on cert_status
        record_pending_tx: Record the broadcast tx hash while minting
        extend_lease: Push the minting lease forward
        list_expired_minting: Assets whose minting lease has lapsed
        list_fallback_identifiers: Minted assets with locally generated ids
        replace_token_id: Replace a fallback identifier with the decoded one
    """

    async def get(
        self, asset_id: str, visibility_scope: str | None
    ) -> CertifiableAsset | None:
        """Load an asset visible to the given scope.

        Args:
            asset_id: Asset identifier.
            visibility_scope: Owner id the caller may see, or None for
                unscoped (service) access.

        Returns:
            The asset if it exists and is visible, None otherwise.
        """
        ...

    async def conditional_update(
        self,
        asset_id: str,
        expected_status: CertStatus,
        update: CertStatusUpdate,
    ) -> CertifiableAsset:
        """Atomically update cert_status if it still equals expected_status.

        Implementation Notes:
        - PostgreSQL: UPDATE ... WHERE id = :id AND cert_status = :expected RETURNING *
        - Zero rows updated means the CAS was lost

        Args:
            asset_id: Asset to update.
            expected_status: Status observed by the caller.
            update: Fields to write.

        Returns:
            The updated asset.

        Raises:
            ConcurrentModificationError: If the current status differs.
            InvalidCertStatusTransitionError: If the transition is not allowed.
            AssetAlreadyCertifiedError: If the asset is already minted.
        """
        ...

    async def record_pending_tx(self, asset_id: str, tx_hash: str) -> None:
        """Record the broadcast transaction hash of a minting asset.

        No-op if the asset is no longer minting.
        """
        ...

    async def extend_lease(
        self, asset_id: str, lease_expires_at: datetime
    ) -> CertifiableAsset:
        """Extend the lease of an asset that is still minting.

        Raises:
            ConcurrentModificationError: If the asset is no longer minting.
        """
        ...

    async def list_expired_minting(
        self, now: datetime, limit: int = 100
    ) -> list[CertifiableAsset]:
        """List minting assets whose lease expired at or before ``now``."""
        ...

    async def list_fallback_identifiers(
        self, limit: int = 100
    ) -> list[CertifiableAsset]:
        """List minted assets whose token id was generated locally."""
        ...

    async def replace_token_id(
        self, asset_id: str, token_id: str, updated_at: datetime
    ) -> CertifiableAsset:
        """Replace a fallback token id with the identifier decoded on-chain.

        Only applies to minted assets whose token id source is fallback.

        Raises:
            ConcurrentModificationError: If the asset no longer carries a
                fallback identifier.
        """
        ...
