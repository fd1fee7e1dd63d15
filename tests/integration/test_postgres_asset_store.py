"""Integration tests for PostgresAssetStore against a real PostgreSQL.

Run with: pytest -m integration
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.domain.errors.concurrent_modification import ConcurrentModificationError
from src.domain.errors.state_transition import (
    AssetAlreadyCertifiedError,
    InvalidCertStatusTransitionError,
)
from src.domain.models.certifiable_asset import (
    Certificate,
    CertStatus,
    CertStatusUpdate,
    LedgerChain,
    TokenIdSource,
)
from src.infrastructure.adapters.persistence import PostgresAssetStore
from tests.helpers.assets import (
    OTHER_OWNER_ID,
    OWNER_ID,
    make_asset,
    make_minted_asset,
    make_minting_asset,
)

pytestmark = pytest.mark.integration

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)
LEASE = NOW + timedelta(minutes=10)


@pytest.fixture
def store(session_factory: async_sessionmaker[AsyncSession]) -> PostgresAssetStore:
    return PostgresAssetStore(session_factory)


def _certificate(token_id: str = "7") -> Certificate:
    tx_hash = "0x" + "ab" * 32
    return Certificate(
        chain=LedgerChain.POLYGON_AMOY,
        tx_hash=tx_hash,
        token_id=token_id,
        explorer_url=f"https://amoy.polygonscan.com/tx/{tx_hash}",
        contract_reference="0x" + "c0" * 20,
    )


class TestVisibility:
    @pytest.mark.asyncio
    async def test_owner_scope_filters_rows(self, store: PostgresAssetStore) -> None:
        await store.save(make_asset("clip-1"))

        assert await store.get("clip-1", OWNER_ID) is not None
        assert await store.get("clip-1", None) is not None
        assert await store.get("clip-1", OTHER_OWNER_ID) is None
        assert await store.get("missing", None) is None

    @pytest.mark.asyncio
    async def test_round_trips_minted_row(self, store: PostgresAssetStore) -> None:
        original = make_minted_asset("clip-1", token_id="42")
        await store.save(original)

        loaded = await store.get("clip-1", None)

        assert loaded == original


class TestConditionalUpdate:
    @pytest.mark.asyncio
    async def test_full_lifecycle(self, store: PostgresAssetStore) -> None:
        await store.save(make_asset("clip-1"))

        claimed = await store.conditional_update(
            "clip-1",
            CertStatus.UNCERTIFIED,
            CertStatusUpdate.claim(LedgerChain.POLYGON_AMOY, NOW, LEASE),
        )
        minted = await store.conditional_update(
            "clip-1",
            CertStatus.MINTING,
            CertStatusUpdate.minted(_certificate(), NOW + timedelta(seconds=30)),
        )

        assert claimed.cert_status is CertStatus.MINTING
        assert claimed.cert_lease_expires_at == LEASE
        assert minted.cert_status is CertStatus.MINTED
        assert minted.certificate == _certificate()
        assert minted.cert_lease_expires_at is None
        assert minted.cert_created_at == NOW + timedelta(seconds=30)

    @pytest.mark.asyncio
    async def test_stale_expected_status_loses(self, store: PostgresAssetStore) -> None:
        await store.save(make_minting_asset("clip-1", lease_expires_at=LEASE))

        with pytest.raises(ConcurrentModificationError) as exc_info:
            await store.conditional_update(
                "clip-1",
                CertStatus.UNCERTIFIED,
                CertStatusUpdate.claim(LedgerChain.POLYGON_AMOY, NOW, LEASE),
            )

        assert exc_info.value.asset_id == "clip-1"

    @pytest.mark.asyncio
    async def test_concurrent_claims_have_one_winner(
        self, store: PostgresAssetStore
    ) -> None:
        await store.save(make_asset("clip-1"))
        update = CertStatusUpdate.claim(LedgerChain.POLYGON_AMOY, NOW, LEASE)

        results = await asyncio.gather(
            *(
                store.conditional_update("clip-1", CertStatus.UNCERTIFIED, update)
                for _ in range(8)
            ),
            return_exceptions=True,
        )

        winners = [r for r in results if not isinstance(r, BaseException)]
        losers = [r for r in results if isinstance(r, BaseException)]
        assert len(winners) == 1
        assert all(isinstance(r, ConcurrentModificationError) for r in losers)

    @pytest.mark.asyncio
    async def test_minted_is_terminal(self, store: PostgresAssetStore) -> None:
        await store.save(make_minted_asset("clip-1"))

        with pytest.raises(AssetAlreadyCertifiedError):
            await store.conditional_update(
                "clip-1", CertStatus.MINTED, CertStatusUpdate.failed(NOW)
            )

    @pytest.mark.asyncio
    async def test_invalid_transition_rejected_before_query(
        self, store: PostgresAssetStore
    ) -> None:
        await store.save(make_asset("clip-1"))

        with pytest.raises(InvalidCertStatusTransitionError):
            await store.conditional_update(
                "clip-1",
                CertStatus.UNCERTIFIED,
                CertStatusUpdate.minted(_certificate(), NOW),
            )


class TestMintingBookkeeping:
    @pytest.mark.asyncio
    async def test_record_pending_tx_only_while_minting(
        self, store: PostgresAssetStore
    ) -> None:
        await store.save(make_asset("clip-a"))
        await store.save(make_minting_asset("clip-b", lease_expires_at=LEASE))

        await store.record_pending_tx("clip-a", "0x01")
        await store.record_pending_tx("clip-b", "0x02")

        clip_a = await store.get("clip-a", None)
        clip_b = await store.get("clip-b", None)
        assert clip_a is not None and clip_a.cert_pending_tx_hash is None
        assert clip_b is not None and clip_b.cert_pending_tx_hash == "0x02"

    @pytest.mark.asyncio
    async def test_status_change_clears_pending_tx(
        self, store: PostgresAssetStore
    ) -> None:
        await store.save(
            make_minting_asset("clip-1", lease_expires_at=LEASE, pending_tx_hash="0x02")
        )

        failed = await store.conditional_update(
            "clip-1", CertStatus.MINTING, CertStatusUpdate.failed(NOW)
        )

        assert failed.cert_pending_tx_hash is None
        assert failed.cert_chain is LedgerChain.POLYGON_AMOY

    @pytest.mark.asyncio
    async def test_failed_attempt_hash_survives_until_reclaim(
        self, store: PostgresAssetStore
    ) -> None:
        await store.save(
            make_minting_asset("clip-1", lease_expires_at=LEASE, pending_tx_hash="0x02")
        )

        await store.conditional_update(
            "clip-1",
            CertStatus.MINTING,
            CertStatusUpdate.failed(NOW, last_tx_hash="0x02"),
        )
        failed = await store.get("clip-1", None)
        reclaimed = await store.conditional_update(
            "clip-1",
            CertStatus.FAILED,
            CertStatusUpdate.claim(LedgerChain.POLYGON_AMOY, NOW, LEASE),
        )

        assert failed is not None and failed.cert_last_tx_hash == "0x02"
        assert reclaimed.cert_last_tx_hash is None

    @pytest.mark.asyncio
    async def test_extend_lease(self, store: PostgresAssetStore) -> None:
        await store.save(make_minting_asset("clip-1", lease_expires_at=NOW))
        await store.save(make_asset("clip-2"))

        extended = await store.extend_lease("clip-1", LEASE)

        assert extended.cert_lease_expires_at == LEASE
        with pytest.raises(ConcurrentModificationError):
            await store.extend_lease("clip-2", LEASE)

    @pytest.mark.asyncio
    async def test_list_expired_minting(self, store: PostgresAssetStore) -> None:
        await store.save(make_minting_asset("expired", lease_expires_at=NOW))
        await store.save(make_minting_asset("no-lease"))
        await store.save(
            make_minting_asset("live", lease_expires_at=NOW + timedelta(seconds=1))
        )
        await store.save(make_asset("idle"))

        expired = await store.list_expired_minting(NOW)

        assert [asset.id for asset in expired] == ["no-lease", "expired"]

    @pytest.mark.asyncio
    async def test_list_expired_minting_respects_limit(
        self, store: PostgresAssetStore
    ) -> None:
        for index in range(3):
            await store.save(make_minting_asset(f"clip-{index}", lease_expires_at=NOW))

        assert len(await store.list_expired_minting(NOW, limit=2)) == 2


class TestFallbackIdentifiers:
    @pytest.mark.asyncio
    async def test_lists_only_fallback_rows(self, store: PostgresAssetStore) -> None:
        await store.save(
            make_minted_asset("fallback", token_id_source=TokenIdSource.FALLBACK)
        )
        await store.save(make_minted_asset("event"))

        rows = await store.list_fallback_identifiers()

        assert [asset.id for asset in rows] == ["fallback"]

    @pytest.mark.asyncio
    async def test_replace_token_id(self, store: PostgresAssetStore) -> None:
        await store.save(
            make_minted_asset(
                "fallback", token_id="1767225600000", token_id_source=TokenIdSource.FALLBACK
            )
        )
        await store.save(make_minted_asset("event"))

        updated = await store.replace_token_id("fallback", "9", NOW)

        assert updated.cert_token_id == "9"
        assert updated.cert_token_id_source is TokenIdSource.EVENT
        assert updated.cert_updated_at == NOW
        with pytest.raises(ConcurrentModificationError):
            await store.replace_token_id("event", "9", NOW)
