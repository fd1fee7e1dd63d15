"""Unit tests for the CertifiableAsset model and its state machine."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from src.domain.errors.state_transition import (
    AssetAlreadyCertifiedError,
    InvalidCertStatusTransitionError,
)
from src.domain.models.certifiable_asset import (
    AssetType,
    Certificate,
    CertifiableAsset,
    CertStatus,
    CertStatusUpdate,
    LedgerChain,
    TokenIdSource,
)
from tests.helpers.assets import make_asset, make_minted_asset, make_minting_asset

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)
LEASE = NOW + timedelta(minutes=10)


def _certificate(**overrides: object) -> Certificate:
    values: dict[str, object] = {
        "chain": LedgerChain.POLYGON_AMOY,
        "tx_hash": "0x" + "22" * 32,
        "token_id": "5",
        "explorer_url": "https://amoy.polygonscan.com/tx/0x" + "22" * 32,
        "contract_reference": "0x" + "c0" * 20,
    }
    values.update(overrides)
    return Certificate(**values)  # type: ignore[arg-type]


class TestAssetType:
    def test_identity_samples(self) -> None:
        assert AssetType.FACE_IDENTITY.is_identity_sample
        assert AssetType.VOICE_IDENTITY.is_identity_sample

    @pytest.mark.parametrize(
        "asset_type", [AssetType.CLIP, AssetType.TRANSCRIPT, AssetType.BLOG_POST]
    )
    def test_content_artifacts(self, asset_type: AssetType) -> None:
        assert not asset_type.is_identity_sample


class TestCertStatus:
    def test_only_minted_is_terminal(self) -> None:
        assert [s for s in CertStatus if s.is_terminal()] == [CertStatus.MINTED]

    def test_claimable_states(self) -> None:
        assert CertStatus.UNCERTIFIED.is_claimable()
        assert CertStatus.FAILED.is_claimable()
        assert not CertStatus.MINTING.is_claimable()
        assert not CertStatus.MINTED.is_claimable()

    def test_nothing_returns_to_uncertified(self) -> None:
        for status in CertStatus:
            assert CertStatus.UNCERTIFIED not in status.valid_transitions()

    def test_minted_has_no_transitions(self) -> None:
        assert CertStatus.MINTED.valid_transitions() == frozenset()


class TestCertificateInvariant:
    """Certificate fields are present exactly when the asset is minted."""

    def test_new_asset_is_uncertified(self) -> None:
        asset = make_asset()

        assert asset.cert_status is CertStatus.UNCERTIFIED
        assert asset.certificate is None

    def test_minted_without_certificate_fields_rejected(self) -> None:
        with pytest.raises(ValueError, match="missing certificate fields"):
            CertifiableAsset(
                id="clip-1",
                owner_id="creator-1",
                asset_type=AssetType.CLIP,
                cert_status=CertStatus.MINTED,
                cert_created_at=NOW,
            )

    def test_minted_without_created_at_rejected(self) -> None:
        with pytest.raises(ValueError, match="cert_created_at"):
            CertifiableAsset(
                id="clip-1",
                owner_id="creator-1",
                asset_type=AssetType.CLIP,
                cert_status=CertStatus.MINTED,
                cert_tx_hash="0x01",
                cert_token_id="1",
                cert_explorer_url="https://x/tx/0x01",
            )

    def test_failed_with_certificate_fields_rejected(self) -> None:
        with pytest.raises(ValueError, match="carries certificate fields"):
            make_asset(cert_status=CertStatus.FAILED, cert_tx_hash="0x01")

    def test_pending_tx_only_while_minting(self) -> None:
        with pytest.raises(ValueError, match="pending tx hash"):
            make_asset(cert_pending_tx_hash="0x01")

    def test_failed_attempt_hash_only_while_failed(self) -> None:
        with pytest.raises(ValueError, match="failed attempt hash"):
            make_asset(cert_last_tx_hash="0x01")

    def test_certificate_property_of_minted_asset(self) -> None:
        asset = make_minted_asset(token_id="42")

        certificate = asset.certificate

        assert certificate is not None
        assert certificate.token_id == "42"
        assert certificate.chain is LedgerChain.POLYGON_AMOY
        assert certificate.token_id_source is TokenIdSource.EVENT

    def test_certificate_to_dict(self) -> None:
        certificate = _certificate()

        assert certificate.to_dict() == {
            "chain": "polygon_amoy",
            "tx_hash": certificate.tx_hash,
            "token_id": "5",
            "explorer_url": certificate.explorer_url,
            "contract_reference": "0x" + "c0" * 20,
        }


class TestLease:
    def test_lease_expired_at_boundary(self) -> None:
        asset = make_minting_asset(lease_expires_at=NOW)

        assert asset.lease_expired(NOW)
        assert not asset.lease_expired(NOW - timedelta(seconds=1))

    def test_non_minting_asset_never_expires(self) -> None:
        assert not make_asset().lease_expired(NOW)


class TestApply:
    def test_claim_sets_chain_and_lease(self) -> None:
        asset = make_asset()

        claimed = asset.apply(CertStatusUpdate.claim(LedgerChain.POLYGON, NOW, LEASE))

        assert claimed.cert_status is CertStatus.MINTING
        assert claimed.cert_chain is LedgerChain.POLYGON
        assert claimed.cert_lease_expires_at == LEASE
        assert claimed.cert_updated_at == NOW
        assert asset.cert_status is CertStatus.UNCERTIFIED

    def test_minted_writes_certificate_and_created_at(self) -> None:
        claimed = make_minting_asset(lease_expires_at=LEASE, pending_tx_hash="0x01")
        certificate = _certificate(token_id_source=TokenIdSource.FALLBACK)

        minted = claimed.apply(CertStatusUpdate.minted(certificate, NOW))

        assert minted.certificate == certificate
        assert minted.cert_created_at == NOW
        assert minted.cert_pending_tx_hash is None
        assert minted.cert_lease_expires_at is None
        assert minted.cert_token_id_source is TokenIdSource.FALLBACK

    def test_failed_clears_lease_and_pending_tx(self) -> None:
        claimed = make_minting_asset(lease_expires_at=LEASE, pending_tx_hash="0x01")

        failed = claimed.apply(CertStatusUpdate.failed(NOW))

        assert failed.cert_status is CertStatus.FAILED
        assert failed.cert_pending_tx_hash is None
        assert failed.cert_lease_expires_at is None
        assert failed.cert_chain is LedgerChain.POLYGON_AMOY
        assert failed.cert_last_tx_hash is None

    def test_failed_keeps_attempt_hash_until_reclaimed(self) -> None:
        claimed = make_minting_asset(lease_expires_at=LEASE, pending_tx_hash="0x01")

        failed = claimed.apply(CertStatusUpdate.failed(NOW, last_tx_hash="0x01"))
        reclaimed = failed.apply(
            CertStatusUpdate.claim(LedgerChain.POLYGON_AMOY, NOW, LEASE)
        )

        assert failed.cert_last_tx_hash == "0x01"
        assert failed.cert_pending_tx_hash is None
        assert reclaimed.cert_last_tx_hash is None

    def test_minted_asset_cannot_change(self) -> None:
        with pytest.raises(AssetAlreadyCertifiedError):
            make_minted_asset().apply(CertStatusUpdate.failed(NOW))

    def test_uncertified_cannot_jump_to_minted(self) -> None:
        with pytest.raises(InvalidCertStatusTransitionError) as exc_info:
            make_asset().apply(CertStatusUpdate.minted(_certificate(), NOW))

        assert exc_info.value.from_status is CertStatus.UNCERTIFIED
        assert exc_info.value.allowed_transitions == [CertStatus.MINTING]

    def test_minting_cannot_be_claimed_again(self) -> None:
        with pytest.raises(InvalidCertStatusTransitionError):
            make_minting_asset(lease_expires_at=LEASE).apply(
                CertStatusUpdate.claim(LedgerChain.POLYGON_AMOY, NOW, LEASE)
            )


class TestCertStatusUpdate:
    def test_minted_requires_certificate(self) -> None:
        with pytest.raises(ValueError):
            CertStatusUpdate(cert_status=CertStatus.MINTED, updated_at=NOW)

    def test_claim_requires_lease(self) -> None:
        with pytest.raises(ValueError):
            CertStatusUpdate(cert_status=CertStatus.MINTING, updated_at=NOW)

    def test_failed_cannot_carry_lease(self) -> None:
        with pytest.raises(ValueError):
            CertStatusUpdate(
                cert_status=CertStatus.FAILED, updated_at=NOW, lease_expires_at=LEASE
            )

    def test_only_failure_carries_attempt_hash(self) -> None:
        with pytest.raises(ValueError, match="failed attempt hash"):
            CertStatusUpdate(
                cert_status=CertStatus.MINTING,
                updated_at=NOW,
                lease_expires_at=LEASE,
                last_tx_hash="0x01",
            )
