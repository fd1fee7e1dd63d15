"""Ledger client port.

Defines the contract for anchoring certificates on a ledger. A ledger
client is bound to one chain, one contract, and one signer.

Rules:
1. VALIDATE FIRST - validate_configuration() never touches the network
2. ONE NONCE AT A TIME - nonce assignment is serialized per signer
3. NO INTERNAL RETRIES - every failure is raised to the caller
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol

from src.domain.models.certifiable_asset import LedgerChain
from src.domain.models.ledger_receipt import (
    LedgerReceipt,
    TokenIdResult,
    TransactionStatus,
)

OnSubmitted = Callable[[str], Awaitable[None]]


class LedgerClientProtocol(Protocol):
    """Protocol for ledger certification.

    Attributes:
        chain: Ledger this client submits to.
        contract_reference: Address of the certificate contract.
        signer_address: Address of the platform signer.
    """

    @property
    def chain(self) -> LedgerChain: ...

    @property
    def contract_reference(self) -> str | None: ...

    @property
    def signer_address(self) -> str | None: ...

    def validate_configuration(self) -> None:
        """Validate contract address, signing key, and RPC endpoint.

        Raises:
            LedgerConfigurationError: If any setting is missing or malformed.
        """
        ...

    async def certify(
        self,
        signer_identity: str,
        asset_id: str,
        on_submitted: OnSubmitted | None = None,
    ) -> LedgerReceipt:
        """Submit a certification transaction and wait for confirmation.

        Args:
            signer_identity: Address the certificate is issued to.
            asset_id: Asset being certified.
            on_submitted: Awaited with the tx hash right after broadcast.

        Returns:
            The confirmed receipt.

        Raises:
            LedgerConfigurationError: Configuration is unusable.
            TransactionRevertedError: The contract rejected the call.
            TransactionUnderpricedError: Gas price too low.
            NonceCollisionError: Nonce reused or out of sequence.
            InsufficientFundsError: Signer cannot pay for gas.
            BroadcastError: The node refused the transaction.
            ConfirmationTimeoutError: Not confirmed within the timeout.
        """
        ...

    def decode_token_id(self, receipt: LedgerReceipt) -> TokenIdResult:
        """Decode the certificate identifier from a confirmed receipt."""
        ...

    async def get_transaction_status(
        self, tx_hash: str
    ) -> tuple[TransactionStatus, LedgerReceipt | None]:
        """Query the ledger for a previously broadcast transaction.

        Returns:
            Status plus the receipt when the transaction was included.
        """
        ...

    def explorer_url(self, tx_hash: str) -> str:
        """Block explorer link for a transaction."""
        ...
