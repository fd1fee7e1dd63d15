"""Unit tests for MintingConfig."""

from __future__ import annotations

import pytest

from src.config.minting_config import (
    DEFAULT_CONTRACT_ADDRESS,
    DEFAULT_SERVICE_IDENTITY,
    TEST_MINTING_CONFIG,
    MintingConfig,
)
from src.domain.models.certifiable_asset import LedgerChain

CERT_ENV_VARS = (
    "CERT_SIGNER_PRIVATE_KEY",
    "POLYGON_PRIVATE_KEY",
    "CERT_CONTRACT_ADDRESS",
    "POLYGON_RPC_URL",
    "POLYGON_AMOY_RPC_URL",
    "CERT_DEFAULT_CHAIN",
    "CERT_CONFIRMATION_TIMEOUT_SECONDS",
    "CERT_MINTING_LEASE_SECONDS",
    "CERT_SERVICE_TOKEN",
    "CERT_SERVICE_IDENTITY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in CERT_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_default_values(self) -> None:
        config = MintingConfig()

        assert config.signing_key is None
        assert config.contract_address == DEFAULT_CONTRACT_ADDRESS
        assert config.default_chain is LedgerChain.POLYGON
        assert config.confirmation_timeout_seconds == 120.0
        assert config.lease_seconds == 600
        assert config.service_identity == DEFAULT_SERVICE_IDENTITY

    def test_supported_chains(self) -> None:
        assert set(MintingConfig().supported_chains) == {
            LedgerChain.POLYGON,
            LedgerChain.POLYGON_AMOY,
        }

    def test_test_config_is_valid(self) -> None:
        assert TEST_MINTING_CONFIG.lease_seconds > (
            TEST_MINTING_CONFIG.confirmation_timeout_seconds
        )


class TestValidation:
    def test_non_positive_timeout_rejected(self) -> None:
        with pytest.raises(ValueError, match="confirmation_timeout_seconds"):
            MintingConfig(confirmation_timeout_seconds=0)

    def test_lease_must_exceed_timeout(self) -> None:
        with pytest.raises(ValueError, match="must exceed"):
            MintingConfig(confirmation_timeout_seconds=120.0, lease_seconds=60)

    def test_empty_service_identity_rejected(self) -> None:
        with pytest.raises(ValueError, match="service_identity"):
            MintingConfig(service_identity="")


class TestChainSettings:
    def test_polygon_mainnet(self) -> None:
        settings = MintingConfig(polygon_rpc_url="https://rpc").chain_settings(
            LedgerChain.POLYGON
        )

        assert settings.chain_id == 137
        assert settings.rpc_url == "https://rpc"
        assert settings.explorer_tx_url("0xabc") == "https://polygonscan.com/tx/0xabc"

    def test_polygon_amoy(self) -> None:
        settings = MintingConfig().chain_settings(LedgerChain.POLYGON_AMOY)

        assert settings.chain_id == 80002
        assert settings.rpc_url is None
        assert settings.explorer_base_url == "https://amoy.polygonscan.com"


class TestFromEnvironment:
    def test_reads_all_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CERT_SIGNER_PRIVATE_KEY", "0x" + "22" * 32)
        monkeypatch.setenv("CERT_CONTRACT_ADDRESS", "0x" + "c0" * 20)
        monkeypatch.setenv("POLYGON_RPC_URL", "https://polygon")
        monkeypatch.setenv("POLYGON_AMOY_RPC_URL", "https://amoy")
        monkeypatch.setenv("CERT_DEFAULT_CHAIN", "POLYGON_AMOY")
        monkeypatch.setenv("CERT_CONFIRMATION_TIMEOUT_SECONDS", "30")
        monkeypatch.setenv("CERT_MINTING_LEASE_SECONDS", "90")
        monkeypatch.setenv("CERT_SERVICE_TOKEN", "secret")
        monkeypatch.setenv("CERT_SERVICE_IDENTITY", "service:ingest")

        config = MintingConfig.from_environment()

        assert config.signing_key == "0x" + "22" * 32
        assert config.contract_address == "0x" + "c0" * 20
        assert config.polygon_rpc_url == "https://polygon"
        assert config.polygon_amoy_rpc_url == "https://amoy"
        assert config.default_chain is LedgerChain.POLYGON_AMOY
        assert config.confirmation_timeout_seconds == 30.0
        assert config.lease_seconds == 90
        assert config.service_token == "secret"
        assert config.service_identity == "service:ingest"

    def test_legacy_signer_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("POLYGON_PRIVATE_KEY", "0x" + "33" * 32)

        assert MintingConfig.from_environment().signing_key == "0x" + "33" * 32

    def test_blank_values_are_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CERT_SIGNER_PRIVATE_KEY", "   ")
        monkeypatch.setenv("CERT_CONTRACT_ADDRESS", "")

        config = MintingConfig.from_environment()

        assert config.signing_key is None
        assert config.contract_address == DEFAULT_CONTRACT_ADDRESS

    def test_invalid_numbers_fall_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CERT_CONFIRMATION_TIMEOUT_SECONDS", "soon")
        monkeypatch.setenv("CERT_MINTING_LEASE_SECONDS", "long")

        config = MintingConfig.from_environment()

        assert config.confirmation_timeout_seconds == 120.0
        assert config.lease_seconds == 600

    def test_unknown_default_chain_rejected(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CERT_DEFAULT_CHAIN", "solana")

        with pytest.raises(ValueError, match="CERT_DEFAULT_CHAIN"):
            MintingConfig.from_environment()

    def test_malformed_key_is_not_validated_at_load(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CERT_SIGNER_PRIVATE_KEY", "not-a-key")

        assert MintingConfig.from_environment().signing_key == "not-a-key"
