"""Unit tests for LedgerErrorClassifier."""

from __future__ import annotations

import pytest

from src.application.services.ledger_error_classifier import LedgerErrorClassifier
from src.domain.errors.certification import (
    CertificationConflictError,
    ConfigurationError,
    TransactionError,
    UnclassifiedCertificationError,
)
from src.domain.errors.ledger import (
    BroadcastError,
    ConfirmationTimeoutError,
    InsufficientFundsError,
    LedgerError,
    MalformedContractAddressError,
    MalformedSigningKeyError,
    MissingRpcEndpointError,
    MissingSigningKeyError,
    NonceCollisionError,
    TransactionRevertedError,
    TransactionUnderpricedError,
    UnsupportedChainError,
)


@pytest.fixture
def classifier() -> LedgerErrorClassifier:
    return LedgerErrorClassifier()


class TestConfigurationErrors:
    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (MissingSigningKeyError(), "MISSING_SIGNING_KEY"),
            (MalformedSigningKeyError("odd length"), "MALFORMED_SIGNING_KEY"),
            (MalformedContractAddressError("0x12"), "MALFORMED_CONTRACT_ADDRESS"),
            (MissingRpcEndpointError("polygon"), "MISSING_RPC_ENDPOINT"),
            (UnsupportedChainError("solana"), "UNSUPPORTED_CHAIN"),
        ],
    )
    def test_maps_to_configuration_code(
        self, classifier: LedgerErrorClassifier, error: Exception, code: str
    ) -> None:
        classified = classifier.classify(error)

        assert isinstance(classified, ConfigurationError)
        assert classified.stage == "config"
        assert classified.code == code
        assert classified.__cause__ is error


class TestTransactionErrors:
    @pytest.mark.parametrize(
        ("error_type", "code"),
        [
            (TransactionRevertedError, "TX_REVERTED"),
            (TransactionUnderpricedError, "TX_UNDERPRICED"),
            (NonceCollisionError, "TX_NONCE_COLLISION"),
            (InsufficientFundsError, "TX_INSUFFICIENT_FUNDS"),
            (BroadcastError, "TX_BROADCAST_FAILED"),
            (ConfirmationTimeoutError, "TX_CONFIRMATION_TIMEOUT"),
        ],
    )
    def test_maps_to_transaction_code(
        self, classifier: LedgerErrorClassifier, error_type: type, code: str
    ) -> None:
        error = error_type("node said no", tx_hash="0xabc")

        classified = classifier.classify(error)

        assert isinstance(classified, TransactionError)
        assert classified.stage == "mint"
        assert classified.code == code
        assert classified.tx_hash == "0xabc"
        assert classified.__cause__ is error

    def test_insufficient_funds_message_is_actionable(
        self, classifier: LedgerErrorClassifier
    ) -> None:
        classified = classifier.classify(InsufficientFundsError("insufficient funds"))

        assert classified.message == (
            "Insufficient balance for gas fees. Please fund the platform wallet."
        )

    def test_generic_ledger_error_keeps_message(
        self, classifier: LedgerErrorClassifier
    ) -> None:
        classified = classifier.classify(LedgerError("weird rpc reply"))

        assert isinstance(classified, TransactionError)
        assert classified.code == "TX_BROADCAST_FAILED"
        assert classified.message == "weird rpc reply"


class TestOtherErrors:
    def test_unknown_exception_is_unclassified(
        self, classifier: LedgerErrorClassifier
    ) -> None:
        error = RuntimeError("boom")

        classified = classifier.classify(error)

        assert isinstance(classified, UnclassifiedCertificationError)
        assert classified.stage == "unknown"
        assert classified.message == "boom"
        assert classified.__cause__ is error

    def test_empty_message_gets_default(
        self, classifier: LedgerErrorClassifier
    ) -> None:
        classified = classifier.classify(RuntimeError())

        assert classified.message == "Unexpected certification failure"

    def test_certification_errors_pass_through(
        self, classifier: LedgerErrorClassifier
    ) -> None:
        error = CertificationConflictError("clip-1")

        assert classifier.classify(error) is error
        assert error.__cause__ is None
