"""PostgreSQL asset store (SQLAlchemy async).

Implements AssetStoreProtocol against the ``certifiable_assets`` table.
Every status change is a single conditional statement:

    UPDATE certifiable_assets SET ...
    WHERE id = :id AND cert_status = :expected
    RETURNING *

Zero rows returned means another writer changed the status first. No
session is held open across a ledger call; each method opens and commits
its own short transaction.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from src.domain.errors.concurrent_modification import ConcurrentModificationError
from src.domain.errors.state_transition import (
    AssetAlreadyCertifiedError,
    InvalidCertStatusTransitionError,
)
from src.domain.models.certifiable_asset import (
    AssetType,
    CertifiableAsset,
    CertStatus,
    CertStatusUpdate,
    LedgerChain,
    TokenIdSource,
)

logger = get_logger()

SCHEMA_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS certifiable_assets (
        id TEXT PRIMARY KEY,
        owner_id TEXT NOT NULL,
        asset_type TEXT NOT NULL,
        owner_wallet_address TEXT,
        cert_status TEXT NOT NULL DEFAULT 'uncertified',
        cert_chain TEXT,
        cert_tx_hash TEXT,
        cert_token_id TEXT,
        cert_token_id_source TEXT,
        cert_explorer_url TEXT,
        cert_contract_address TEXT,
        cert_pending_tx_hash TEXT,
        cert_last_tx_hash TEXT,
        cert_lease_expires_at TIMESTAMPTZ,
        cert_created_at TIMESTAMPTZ,
        cert_updated_at TIMESTAMPTZ,
        CONSTRAINT certifiable_assets_status_check CHECK (
            cert_status IN ('uncertified', 'minting', 'minted', 'failed')
        ),
        CONSTRAINT certifiable_assets_certificate_check CHECK (
            (cert_status = 'minted') = (
                cert_tx_hash IS NOT NULL
                AND cert_token_id IS NOT NULL
                AND cert_explorer_url IS NOT NULL
            )
        )
    )
    """,
    """
    ALTER TABLE certifiable_assets
    ADD COLUMN IF NOT EXISTS cert_last_tx_hash TEXT
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_certifiable_assets_minting_lease
    ON certifiable_assets (cert_lease_expires_at)
    WHERE cert_status = 'minting'
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_certifiable_assets_fallback_token
    ON certifiable_assets (cert_updated_at)
    WHERE cert_status = 'minted' AND cert_token_id_source = 'fallback'
    """,
)

_CAS_UPDATE = text("""
    UPDATE certifiable_assets SET
        cert_status = :new_status,
        cert_chain = COALESCE(:cert_chain, cert_chain),
        cert_tx_hash = :cert_tx_hash,
        cert_token_id = :cert_token_id,
        cert_token_id_source = :cert_token_id_source,
        cert_explorer_url = :cert_explorer_url,
        cert_contract_address = COALESCE(:cert_contract_address, cert_contract_address),
        cert_pending_tx_hash = NULL,
        cert_last_tx_hash = :cert_last_tx_hash,
        cert_lease_expires_at = :cert_lease_expires_at,
        cert_created_at = :cert_created_at,
        cert_updated_at = :cert_updated_at
    WHERE id = :id AND cert_status = :expected_status
    RETURNING *
""")


def _row_to_asset(row: Mapping[str, Any]) -> CertifiableAsset:
    return CertifiableAsset(
        id=row["id"],
        owner_id=row["owner_id"],
        asset_type=AssetType(row["asset_type"]),
        cert_status=CertStatus(row["cert_status"]),
        owner_wallet_address=row["owner_wallet_address"],
        cert_chain=LedgerChain(row["cert_chain"]) if row["cert_chain"] else None,
        cert_tx_hash=row["cert_tx_hash"],
        cert_token_id=row["cert_token_id"],
        cert_token_id_source=(
            TokenIdSource(row["cert_token_id_source"])
            if row["cert_token_id_source"]
            else None
        ),
        cert_explorer_url=row["cert_explorer_url"],
        cert_contract_address=row["cert_contract_address"],
        cert_pending_tx_hash=row["cert_pending_tx_hash"],
        cert_last_tx_hash=row["cert_last_tx_hash"],
        cert_lease_expires_at=row["cert_lease_expires_at"],
        cert_created_at=row["cert_created_at"],
        cert_updated_at=row["cert_updated_at"],
    )


class PostgresAssetStore:
    """AssetStoreProtocol implementation backed by PostgreSQL.

    Attributes:
        _session_factory: SQLAlchemy async session factory.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._log = logger.bind(component="persistence", store="certifiable_assets")

    async def create_schema(self) -> None:
        """Create the table and indexes if they do not exist."""
        async with self._session_factory() as session:
            for statement in SCHEMA_STATEMENTS:
                await session.execute(text(statement))
            await session.commit()

    async def save(self, asset: CertifiableAsset) -> None:
        """Insert an asset (used by ingestion and tests)."""
        async with self._session_factory() as session:
            await session.execute(
                text("""
                    INSERT INTO certifiable_assets (
                        id, owner_id, asset_type, owner_wallet_address,
                        cert_status, cert_chain, cert_tx_hash, cert_token_id,
                        cert_token_id_source, cert_explorer_url,
                        cert_contract_address, cert_pending_tx_hash, cert_last_tx_hash,
                        cert_lease_expires_at, cert_created_at, cert_updated_at
                    ) VALUES (
                        :id, :owner_id, :asset_type, :owner_wallet_address,
                        :cert_status, :cert_chain, :cert_tx_hash, :cert_token_id,
                        :cert_token_id_source, :cert_explorer_url,
                        :cert_contract_address, :cert_pending_tx_hash, :cert_last_tx_hash,
                        :cert_lease_expires_at, :cert_created_at, :cert_updated_at
                    )
                """),
                {
                    "id": asset.id,
                    "owner_id": asset.owner_id,
                    "asset_type": asset.asset_type.value,
                    "owner_wallet_address": asset.owner_wallet_address,
                    "cert_status": asset.cert_status.value,
                    "cert_chain": asset.cert_chain.value if asset.cert_chain else None,
                    "cert_tx_hash": asset.cert_tx_hash,
                    "cert_token_id": asset.cert_token_id,
                    "cert_token_id_source": (
                        asset.cert_token_id_source.value
                        if asset.cert_token_id_source
                        else None
                    ),
                    "cert_explorer_url": asset.cert_explorer_url,
                    "cert_contract_address": asset.cert_contract_address,
                    "cert_pending_tx_hash": asset.cert_pending_tx_hash,
                    "cert_last_tx_hash": asset.cert_last_tx_hash,
                    "cert_lease_expires_at": asset.cert_lease_expires_at,
                    "cert_created_at": asset.cert_created_at,
                    "cert_updated_at": asset.cert_updated_at,
                },
            )
            await session.commit()

    async def get(
        self, asset_id: str, visibility_scope: str | None
    ) -> CertifiableAsset | None:
        query = "SELECT * FROM certifiable_assets WHERE id = :id"
        params: dict[str, Any] = {"id": asset_id}
        if visibility_scope is not None:
            query += " AND owner_id = :owner_id"
            params["owner_id"] = visibility_scope

        async with self._session_factory() as session:
            result = await session.execute(text(query), params)
            row = result.mappings().first()
        return _row_to_asset(row) if row is not None else None

    async def conditional_update(
        self,
        asset_id: str,
        expected_status: CertStatus,
        update: CertStatusUpdate,
    ) -> CertifiableAsset:
        if expected_status.is_terminal():
            raise AssetAlreadyCertifiedError(asset_id=asset_id)
        valid = expected_status.valid_transitions()
        if update.cert_status not in valid:
            raise InvalidCertStatusTransitionError(
                from_status=expected_status,
                to_status=update.cert_status,
                allowed_transitions=sorted(valid, key=lambda s: s.value),
            )

        certificate = update.certificate
        params = {
            "id": asset_id,
            "expected_status": expected_status.value,
            "new_status": update.cert_status.value,
            "cert_chain": update.cert_chain.value if update.cert_chain else None,
            "cert_tx_hash": certificate.tx_hash if certificate else None,
            "cert_token_id": certificate.token_id if certificate else None,
            "cert_token_id_source": (
                certificate.token_id_source.value if certificate else None
            ),
            "cert_explorer_url": certificate.explorer_url if certificate else None,
            "cert_contract_address": (
                certificate.contract_reference if certificate else None
            ),
            "cert_lease_expires_at": update.lease_expires_at,
            "cert_last_tx_hash": update.last_tx_hash,
            "cert_created_at": update.updated_at if certificate else None,
            "cert_updated_at": update.updated_at,
        }

        async with self._session_factory() as session:
            result = await session.execute(_CAS_UPDATE, params)
            row = result.mappings().first()
            await session.commit()

        if row is None:
            self._log.info(
                "cas_update_lost",
                asset_id=asset_id,
                expected_status=expected_status.value,
                new_status=update.cert_status.value,
            )
            raise ConcurrentModificationError(asset_id, expected_status)
        return _row_to_asset(row)

    async def record_pending_tx(self, asset_id: str, tx_hash: str) -> None:
        async with self._session_factory() as session:
            await session.execute(
                text("""
                    UPDATE certifiable_assets
                    SET cert_pending_tx_hash = :tx_hash
                    WHERE id = :id AND cert_status = 'minting'
                """),
                {"id": asset_id, "tx_hash": tx_hash},
            )
            await session.commit()

    async def extend_lease(
        self, asset_id: str, lease_expires_at: datetime
    ) -> CertifiableAsset:
        async with self._session_factory() as session:
            result = await session.execute(
                text("""
                    UPDATE certifiable_assets
                    SET cert_lease_expires_at = :lease_expires_at
                    WHERE id = :id AND cert_status = 'minting'
                    RETURNING *
                """),
                {"id": asset_id, "lease_expires_at": lease_expires_at},
            )
            row = result.mappings().first()
            await session.commit()
        if row is None:
            raise ConcurrentModificationError(
                asset_id, CertStatus.MINTING, operation="extend_lease"
            )
        return _row_to_asset(row)

    async def list_expired_minting(
        self, now: datetime, limit: int = 100
    ) -> list[CertifiableAsset]:
        async with self._session_factory() as session:
            result = await session.execute(
                text("""
                    SELECT * FROM certifiable_assets
                    WHERE cert_status = 'minting'
                      AND (cert_lease_expires_at IS NULL OR cert_lease_expires_at <= :now)
                    ORDER BY cert_lease_expires_at NULLS FIRST
                    LIMIT :limit
                """),
                {"now": now, "limit": limit},
            )
            rows = result.mappings().all()
        return [_row_to_asset(row) for row in rows]

    async def list_fallback_identifiers(
        self, limit: int = 100
    ) -> list[CertifiableAsset]:
        async with self._session_factory() as session:
            result = await session.execute(
                text("""
                    SELECT * FROM certifiable_assets
                    WHERE cert_status = 'minted' AND cert_token_id_source = 'fallback'
                    ORDER BY cert_updated_at
                    LIMIT :limit
                """),
                {"limit": limit},
            )
            rows = result.mappings().all()
        return [_row_to_asset(row) for row in rows]

    async def replace_token_id(
        self, asset_id: str, token_id: str, updated_at: datetime
    ) -> CertifiableAsset:
        async with self._session_factory() as session:
            result = await session.execute(
                text("""
                    UPDATE certifiable_assets
                    SET cert_token_id = :token_id,
                        cert_token_id_source = 'event',
                        cert_updated_at = :updated_at
                    WHERE id = :id
                      AND cert_status = 'minted'
                      AND cert_token_id_source = 'fallback'
                    RETURNING *
                """),
                {"id": asset_id, "token_id": token_id, "updated_at": updated_at},
            )
            row = result.mappings().first()
            await session.commit()
        if row is None:
            raise ConcurrentModificationError(
                asset_id, CertStatus.MINTED, operation="replace_token_id"
            )
        return _row_to_asset(row)
