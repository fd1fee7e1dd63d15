"""Unit tests for the in-memory certification stubs."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from src.domain.errors.concurrent_modification import ConcurrentModificationError
from src.domain.errors.ledger import InsufficientFundsError
from src.domain.models.audit_entry import AuditAction, AuditLogEntry
from src.domain.models.certifiable_asset import (
    CertStatus,
    CertStatusUpdate,
    LedgerChain,
    TokenIdSource,
)
from src.domain.models.ledger_receipt import (
    TokenIdFound,
    TokenIdNotFound,
    TransactionStatus,
)
from src.infrastructure.stubs import AssetStoreStub, AuditLogStub, LedgerClientStub
from tests.helpers.assets import (
    OTHER_OWNER_ID,
    OWNER_ID,
    make_asset,
    make_minted_asset,
    make_minting_asset,
)

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


class TestAssetStoreStub:
    @pytest.mark.asyncio
    async def test_duplicate_save_rejected(self, asset_store: AssetStoreStub) -> None:
        await asset_store.save(make_asset())

        with pytest.raises(ValueError):
            await asset_store.save(make_asset())

    @pytest.mark.asyncio
    async def test_get_respects_visibility_scope(
        self, asset_store: AssetStoreStub
    ) -> None:
        await asset_store.save(make_asset())

        assert await asset_store.get("clip-1", OWNER_ID) is not None
        assert await asset_store.get("clip-1", None) is not None
        assert await asset_store.get("clip-1", OTHER_OWNER_ID) is None
        assert await asset_store.get("missing", None) is None

    @pytest.mark.asyncio
    async def test_cas_succeeds_on_expected_status(
        self, asset_store: AssetStoreStub
    ) -> None:
        await asset_store.save(make_asset())

        claimed = await asset_store.conditional_update(
            "clip-1",
            CertStatus.UNCERTIFIED,
            CertStatusUpdate.claim(LedgerChain.POLYGON, NOW, NOW + timedelta(minutes=10)),
        )

        assert claimed.cert_status is CertStatus.MINTING
        assert asset_store.status_history["clip-1"] == [
            CertStatus.UNCERTIFIED,
            CertStatus.MINTING,
        ]

    @pytest.mark.asyncio
    async def test_cas_fails_on_stale_status(self, asset_store: AssetStoreStub) -> None:
        await asset_store.save(make_asset(cert_status=CertStatus.FAILED))

        with pytest.raises(ConcurrentModificationError):
            await asset_store.conditional_update(
                "clip-1",
                CertStatus.UNCERTIFIED,
                CertStatusUpdate.claim(
                    LedgerChain.POLYGON, NOW, NOW + timedelta(minutes=10)
                ),
            )

    @pytest.mark.asyncio
    async def test_concurrent_claims_have_one_winner(
        self, asset_store: AssetStoreStub
    ) -> None:
        await asset_store.save(make_asset())
        update = CertStatusUpdate.claim(
            LedgerChain.POLYGON, NOW, NOW + timedelta(minutes=10)
        )

        results = await asyncio.gather(
            *(
                asset_store.conditional_update("clip-1", CertStatus.UNCERTIFIED, update)
                for _ in range(10)
            ),
            return_exceptions=True,
        )

        winners = [r for r in results if not isinstance(r, Exception)]
        assert len(winners) == 1
        assert all(
            isinstance(r, ConcurrentModificationError) for r in results if r not in winners
        )

    @pytest.mark.asyncio
    async def test_record_pending_tx_only_while_minting(
        self, asset_store: AssetStoreStub
    ) -> None:
        await asset_store.save(make_asset("clip-a"))
        await asset_store.save(make_minting_asset("clip-b", lease_expires_at=NOW))

        await asset_store.record_pending_tx("clip-a", "0x01")
        await asset_store.record_pending_tx("clip-b", "0x02")

        clip_a = await asset_store.get("clip-a", None)
        clip_b = await asset_store.get("clip-b", None)
        assert clip_a is not None and clip_a.cert_pending_tx_hash is None
        assert clip_b is not None and clip_b.cert_pending_tx_hash == "0x02"

    @pytest.mark.asyncio
    async def test_extend_lease_requires_minting(
        self, asset_store: AssetStoreStub
    ) -> None:
        await asset_store.save(make_asset())

        with pytest.raises(ConcurrentModificationError):
            await asset_store.extend_lease("clip-1", NOW)

    @pytest.mark.asyncio
    async def test_list_expired_minting(self, asset_store: AssetStoreStub) -> None:
        await asset_store.save(make_minting_asset("expired", lease_expires_at=NOW))
        await asset_store.save(make_minting_asset("no-lease"))
        await asset_store.save(
            make_minting_asset("live", lease_expires_at=NOW + timedelta(seconds=1))
        )

        expired = await asset_store.list_expired_minting(NOW)

        assert {asset.id for asset in expired} == {"expired", "no-lease"}

    @pytest.mark.asyncio
    async def test_replace_token_id_only_for_fallback(
        self, asset_store: AssetStoreStub
    ) -> None:
        await asset_store.save(
            make_minted_asset("fallback", token_id_source=TokenIdSource.FALLBACK)
        )
        await asset_store.save(make_minted_asset("event"))

        updated = await asset_store.replace_token_id("fallback", "9", NOW)

        assert updated.cert_token_id == "9"
        assert updated.cert_token_id_source is TokenIdSource.EVENT
        with pytest.raises(ConcurrentModificationError):
            await asset_store.replace_token_id("event", "9", NOW)

    @pytest.mark.asyncio
    async def test_clear(self, asset_store: AssetStoreStub) -> None:
        await asset_store.save(make_asset())

        asset_store.clear()

        assert await asset_store.get("clip-1", None) is None
        assert asset_store.status_history == {}


class TestAuditLogStub:
    def _entry(self, asset_id: str = "clip-1") -> AuditLogEntry:
        return AuditLogEntry(
            asset_id=asset_id,
            action=AuditAction.CERTIFIED,
            actor_id=OWNER_ID,
            timestamp=NOW,
        )

    @pytest.mark.asyncio
    async def test_append_and_list(self, audit_log: AuditLogStub) -> None:
        entry = self._entry()

        ack = await audit_log.append(entry)
        await audit_log.append(self._entry("clip-2"))

        assert ack.entry_id == entry.id
        assert await audit_log.list_for_asset("clip-1") == [entry]
        assert audit_log.actions_for("clip-2") == [AuditAction.CERTIFIED]

    @pytest.mark.asyncio
    async def test_failing_appends(self) -> None:
        audit_log = AuditLogStub(fail_appends=True)

        with pytest.raises(ConnectionError):
            await audit_log.append(self._entry())

        assert audit_log.entries == []


class TestLedgerClientStub:
    @pytest.mark.asyncio
    async def test_certify_reports_submission(
        self, ledger_client: LedgerClientStub
    ) -> None:
        submitted: list[str] = []

        async def on_submitted(tx_hash: str) -> None:
            submitted.append(tx_hash)

        receipt = await ledger_client.certify("0xabc", "clip-1", on_submitted)

        assert submitted == [receipt.tx_hash]
        assert ledger_client.calls[0].asset_id == "clip-1"
        assert ledger_client.decode_token_id(receipt) == TokenIdFound(token_id="1")

    @pytest.mark.asyncio
    async def test_error_before_submit(self, ledger_client: LedgerClientStub) -> None:
        ledger_client.certify_error = InsufficientFundsError("low balance")

        with pytest.raises(InsufficientFundsError):
            await ledger_client.certify("0xabc", "clip-1")

        assert ledger_client.calls[0].tx_hash is None

    @pytest.mark.asyncio
    async def test_missing_event(self, ledger_client: LedgerClientStub) -> None:
        ledger_client.next_token_id = None

        receipt = await ledger_client.certify("0xabc", "clip-1")

        assert isinstance(ledger_client.decode_token_id(receipt), TokenIdNotFound)

    @pytest.mark.asyncio
    async def test_transaction_status_defaults_to_unknown(
        self, ledger_client: LedgerClientStub
    ) -> None:
        status, receipt = await ledger_client.get_transaction_status("0x01")

        assert status is TransactionStatus.UNKNOWN
        assert receipt is None

    def test_clear(self, ledger_client: LedgerClientStub) -> None:
        ledger_client.certify_error = RuntimeError("x")
        ledger_client.next_token_id = None

        ledger_client.clear()

        assert ledger_client.certify_error is None
        assert ledger_client.next_token_id == 1
