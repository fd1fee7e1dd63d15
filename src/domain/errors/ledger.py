"""Ledger-layer errors.

These are raised by LedgerClient implementations and describe what went
wrong on the ledger side. They are never shown to callers directly: the
LedgerErrorClassifier maps them onto the certification taxonomy.
"""

from __future__ import annotations

from src.domain.exceptions import CertificationDomainError


class LedgerError(CertificationDomainError):
    """Base for every failure raised by a ledger client.

    Attributes:
        tx_hash: Hash of the affected transaction, when one was broadcast.
    """

    def __init__(self, message: str, tx_hash: str | None = None) -> None:
        self.tx_hash = tx_hash
        super().__init__(message)


class LedgerConfigurationError(LedgerError):
    """Configuration is unusable; detected before any network call.

    Attributes:
        setting: Name of the offending setting.
    """

    def __init__(self, message: str, setting: str) -> None:
        self.setting = setting
        super().__init__(message)


class MissingSigningKeyError(LedgerConfigurationError):
    def __init__(self) -> None:
        super().__init__("Signing key is not configured", setting="signing_key")


class MalformedSigningKeyError(LedgerConfigurationError):
    def __init__(self, reason: str = "not a 32-byte hex key") -> None:
        super().__init__(f"Signing key is malformed: {reason}", setting="signing_key")


class MalformedContractAddressError(LedgerConfigurationError):
    def __init__(self, address: str | None) -> None:
        self.address = address
        super().__init__(
            f"Contract address is malformed: {address!r}", setting="contract_address"
        )


class MissingRpcEndpointError(LedgerConfigurationError):
    def __init__(self, chain: str) -> None:
        self.chain = chain
        super().__init__(f"No RPC endpoint configured for {chain}", setting="rpc_url")


class UnsupportedChainError(LedgerConfigurationError):
    def __init__(self, chain: str) -> None:
        self.chain = chain
        super().__init__(f"Unsupported chain: {chain}", setting="chain")


class TransactionRevertedError(LedgerError):
    """The contract rejected the transaction."""


class TransactionUnderpricedError(LedgerError):
    """Gas price too low for the transaction to be mined."""


class NonceCollisionError(LedgerError):
    """The nonce was already used or is out of sequence."""


class InsufficientFundsError(LedgerError):
    """Signer balance cannot cover gas."""


class BroadcastError(LedgerError):
    """The node refused or failed to accept the transaction."""


class ConfirmationTimeoutError(LedgerError):
    """The transaction was broadcast but not confirmed in time."""
