"""Asset store stub implementation.

In-memory AssetStoreProtocol for development and testing. Compare-and-set
is simulated with an asyncio.Lock; PostgreSQL's UPDATE ... WHERE ...
RETURNING provides the real atomicity.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import datetime

from src.application.ports.asset_store import AssetStoreProtocol
from src.domain.errors.concurrent_modification import ConcurrentModificationError
from src.domain.models.certifiable_asset import (
    CertifiableAsset,
    CertStatus,
    CertStatusUpdate,
    TokenIdSource,
)


class AssetStoreStub(AssetStoreProtocol):
    """In-memory stub implementation of AssetStoreProtocol.

    NOT suitable for production use.

    Attributes:
        _assets: Mapping of asset id to CertifiableAsset.
        status_history: Every status written per asset, in order; lets tests
            assert on the transition sequence.
    """

    def __init__(self) -> None:
        """Initialize the stub with empty storage."""
        self._assets: dict[str, CertifiableAsset] = {}
        self._cas_lock = asyncio.Lock()
        self.status_history: dict[str, list[CertStatus]] = {}

    async def save(self, asset: CertifiableAsset) -> None:
        """Store an asset as-is (ingestion or test setup).

        Raises:
            ValueError: If an asset with the same id already exists.
        """
        if asset.id in self._assets:
            raise ValueError(f"Asset already exists: {asset.id}")
        self._assets[asset.id] = asset
        self.status_history[asset.id] = [asset.cert_status]

    async def get(
        self, asset_id: str, visibility_scope: str | None
    ) -> CertifiableAsset | None:
        asset = self._assets.get(asset_id)
        if asset is None:
            return None
        if visibility_scope is not None and asset.owner_id != visibility_scope:
            return None
        return asset

    async def conditional_update(
        self,
        asset_id: str,
        expected_status: CertStatus,
        update: CertStatusUpdate,
    ) -> CertifiableAsset:
        async with self._cas_lock:
            asset = self._assets.get(asset_id)
            if asset is None or asset.cert_status is not expected_status:
                raise ConcurrentModificationError(asset_id, expected_status)
            updated = asset.apply(update)
            self._assets[asset_id] = updated
            self.status_history.setdefault(asset_id, []).append(updated.cert_status)
            return updated

    async def record_pending_tx(self, asset_id: str, tx_hash: str) -> None:
        async with self._cas_lock:
            asset = self._assets.get(asset_id)
            if asset is None or asset.cert_status is not CertStatus.MINTING:
                return
            self._assets[asset_id] = replace(asset, cert_pending_tx_hash=tx_hash)

    async def extend_lease(
        self, asset_id: str, lease_expires_at: datetime
    ) -> CertifiableAsset:
        async with self._cas_lock:
            asset = self._assets.get(asset_id)
            if asset is None or asset.cert_status is not CertStatus.MINTING:
                raise ConcurrentModificationError(
                    asset_id, CertStatus.MINTING, operation="extend_lease"
                )
            updated = replace(asset, cert_lease_expires_at=lease_expires_at)
            self._assets[asset_id] = updated
            return updated

    async def list_expired_minting(
        self, now: datetime, limit: int = 100
    ) -> list[CertifiableAsset]:
        expired = [
            asset
            for asset in self._assets.values()
            if asset.cert_status is CertStatus.MINTING
            and (asset.cert_lease_expires_at is None or asset.cert_lease_expires_at <= now)
        ]
        return expired[:limit]

    async def list_fallback_identifiers(
        self, limit: int = 100
    ) -> list[CertifiableAsset]:
        fallback = [
            asset
            for asset in self._assets.values()
            if asset.cert_status is CertStatus.MINTED
            and asset.cert_token_id_source is TokenIdSource.FALLBACK
        ]
        return fallback[:limit]

    async def replace_token_id(
        self, asset_id: str, token_id: str, updated_at: datetime
    ) -> CertifiableAsset:
        async with self._cas_lock:
            asset = self._assets.get(asset_id)
            if (
                asset is None
                or asset.cert_status is not CertStatus.MINTED
                or asset.cert_token_id_source is not TokenIdSource.FALLBACK
            ):
                raise ConcurrentModificationError(
                    asset_id, CertStatus.MINTED, operation="replace_token_id"
                )
            updated = replace(
                asset,
                cert_token_id=token_id,
                cert_token_id_source=TokenIdSource.EVENT,
                cert_updated_at=updated_at,
            )
            self._assets[asset_id] = updated
            return updated

    def force_status(self, asset: CertifiableAsset) -> None:
        """Overwrite an asset without CAS (simulates another writer)."""
        self._assets[asset.id] = asset
        self.status_history.setdefault(asset.id, []).append(asset.cert_status)

    def clear(self) -> None:
        """Clear all stored assets (for testing)."""
        self._assets.clear()
        self.status_history.clear()
