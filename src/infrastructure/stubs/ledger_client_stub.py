"""Ledger client stub implementation.

In-memory LedgerClientProtocol for development and testing. Each call to
certify() produces a deterministic tx hash and a receipt carrying a
ClipCertified-shaped log unless an outcome has been injected.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from src.application.ports.ledger_client import LedgerClientProtocol, OnSubmitted
from src.domain.errors.ledger import LedgerError
from src.domain.models.certifiable_asset import LedgerChain
from src.domain.models.ledger_receipt import (
    LedgerReceipt,
    TokenIdFound,
    TokenIdNotFound,
    TokenIdResult,
    TransactionStatus,
)

STUB_CONTRACT_ADDRESS = "0x" + "c0" * 20
STUB_SIGNER_ADDRESS = "0x" + "5a" * 20


@dataclass
class CertifyCall:
    """Arguments of one certify() invocation."""

    signer_identity: str
    asset_id: str
    tx_hash: str | None = None


@dataclass
class LedgerClientStub(LedgerClientProtocol):
    """Configurable ledger client for testing.

    Attributes:
        chain_value: Chain reported by the client.
        next_token_id: Token id decoded from the next receipts. None makes
            decode_token_id() report a missing event.
        configuration_error: Raised by validate_configuration() when set.
        certify_error: Raised by certify() when set.
        raise_after_submit: When True, certify_error is raised after the
            on_submitted callback instead of before broadcast.
        hold: When set, certify() waits on it after broadcast.
        tx_statuses: Status returned by get_transaction_status() per hash.
        calls: Recorded certify() invocations.
    """

    chain_value: LedgerChain = LedgerChain.POLYGON_AMOY
    next_token_id: int | None = 1
    configuration_error: Exception | None = None
    certify_error: Exception | None = None
    raise_after_submit: bool = False
    hold: asyncio.Event | None = None
    tx_statuses: dict[str, TransactionStatus] = field(default_factory=dict)
    status_error: LedgerError | None = None
    calls: list[CertifyCall] = field(default_factory=list)
    _counter: int = field(default=0, init=False, repr=False)

    @property
    def chain(self) -> LedgerChain:
        return self.chain_value

    @property
    def contract_reference(self) -> str | None:
        return STUB_CONTRACT_ADDRESS

    @property
    def signer_address(self) -> str | None:
        return STUB_SIGNER_ADDRESS

    def validate_configuration(self) -> None:
        if self.configuration_error is not None:
            raise self.configuration_error

    async def certify(
        self,
        signer_identity: str,
        asset_id: str,
        on_submitted: OnSubmitted | None = None,
    ) -> LedgerReceipt:
        call = CertifyCall(signer_identity=signer_identity, asset_id=asset_id)
        self.calls.append(call)

        if self.certify_error is not None and not self.raise_after_submit:
            raise self.certify_error

        self._counter += 1
        tx_hash = "0x" + f"{self._counter:064x}"
        call.tx_hash = tx_hash
        if on_submitted is not None:
            await on_submitted(tx_hash)

        if self.hold is not None:
            await self.hold.wait()

        if self.certify_error is not None:
            raise self.certify_error

        return self._receipt(tx_hash)

    def decode_token_id(self, receipt: LedgerReceipt) -> TokenIdResult:
        if not receipt.raw_logs:
            return TokenIdNotFound(reason="receipt has no logs")
        token_id = receipt.raw_logs[0].get("tokenId")
        if token_id is None:
            return TokenIdNotFound(reason="no ClipCertified event in 1 log(s)")
        return TokenIdFound(token_id=str(token_id))

    async def get_transaction_status(
        self, tx_hash: str
    ) -> tuple[TransactionStatus, LedgerReceipt | None]:
        if self.status_error is not None:
            raise self.status_error
        status = self.tx_statuses.get(tx_hash, TransactionStatus.UNKNOWN)
        if status is TransactionStatus.CONFIRMED:
            return status, self._receipt(tx_hash)
        if status is TransactionStatus.REVERTED:
            return status, LedgerReceipt(tx_hash=tx_hash, block_number=1, status=0)
        return status, None

    def explorer_url(self, tx_hash: str) -> str:
        return f"https://explorer.stub/{self.chain_value.value}/tx/{tx_hash}"

    def _receipt(self, tx_hash: str) -> LedgerReceipt:
        if self.next_token_id is not None:
            logs: tuple[dict, ...] = ({"tokenId": self.next_token_id},)
        else:
            logs = ({"address": STUB_CONTRACT_ADDRESS},)
        return LedgerReceipt(tx_hash=tx_hash, block_number=1, status=1, raw_logs=logs)

    def clear(self) -> None:
        """Reset recorded calls and injected outcomes (for testing)."""
        self.calls.clear()
        self.tx_statuses.clear()
        self.configuration_error = None
        self.certify_error = None
        self.status_error = None
        self.raise_after_submit = False
        self.hold = None
        self.next_token_id = 1
        self._counter = 0
