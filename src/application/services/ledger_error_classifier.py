"""Ledger error classification.

Maps ledger-layer exceptions onto the caller-facing certification taxonomy.
The classifier never retries and never swallows: it returns a new
CertificationError whose ``__cause__`` is the original exception, ready for
``raise classified from original``.
"""

from __future__ import annotations

from src.domain.errors.certification import (
    CertificationError,
    ConfigurationError,
    TransactionError,
    UnclassifiedCertificationError,
)
from src.domain.errors.ledger import (
    BroadcastError,
    ConfirmationTimeoutError,
    InsufficientFundsError,
    LedgerConfigurationError,
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

_CONFIGURATION_CODES: dict[type[LedgerConfigurationError], str] = {
    MissingSigningKeyError: ConfigurationError.MISSING_SIGNING_KEY,
    MalformedSigningKeyError: ConfigurationError.MALFORMED_SIGNING_KEY,
    MalformedContractAddressError: ConfigurationError.MALFORMED_CONTRACT_ADDRESS,
    MissingRpcEndpointError: ConfigurationError.MISSING_RPC_ENDPOINT,
    UnsupportedChainError: ConfigurationError.UNSUPPORTED_CHAIN,
}

_TRANSACTION_FAILURES: dict[type[LedgerError], tuple[str, str]] = {
    TransactionRevertedError: (
        TransactionError.TX_REVERTED,
        "Transaction reverted. The contract may have rejected this request.",
    ),
    TransactionUnderpricedError: (
        TransactionError.TX_UNDERPRICED,
        "Transaction underpriced. Gas price too low for the network.",
    ),
    NonceCollisionError: (
        TransactionError.TX_NONCE_COLLISION,
        "Transaction nonce mismatch. Please retry.",
    ),
    InsufficientFundsError: (
        TransactionError.TX_INSUFFICIENT_FUNDS,
        "Insufficient balance for gas fees. Please fund the platform wallet.",
    ),
    BroadcastError: (
        TransactionError.TX_BROADCAST_FAILED,
        "Transaction could not be broadcast to the network.",
    ),
    ConfirmationTimeoutError: (
        TransactionError.TX_CONFIRMATION_TIMEOUT,
        "Transaction was not confirmed in time.",
    ),
}


class LedgerErrorClassifier:
    """Classifies exceptions raised during a ledger interaction."""

    def classify(self, exc: BaseException) -> CertificationError:
        """Map an exception to the certification taxonomy.

        Args:
            exc: Exception raised by a ledger client (or anything else).

        Returns:
            A CertificationError with ``__cause__`` set to ``exc``.
            Certification errors pass through unchanged.
        """
        if isinstance(exc, CertificationError):
            return exc
        classified = self._map(exc)
        classified.__cause__ = exc
        return classified

    def _map(self, exc: BaseException) -> CertificationError:
        if isinstance(exc, LedgerConfigurationError):
            for error_type, code in _CONFIGURATION_CODES.items():
                if isinstance(exc, error_type):
                    return ConfigurationError(str(exc), code=code)
            return ConfigurationError(str(exc))

        if isinstance(exc, LedgerError):
            for error_type, (code, message) in _TRANSACTION_FAILURES.items():
                if isinstance(exc, error_type):
                    return TransactionError(message, code=code, tx_hash=exc.tx_hash)
            return TransactionError(str(exc), tx_hash=exc.tx_hash)

        return UnclassifiedCertificationError(
            str(exc) or "Unexpected certification failure"
        )
