"""Ledger receipt and decoded identifier models.

A LedgerReceipt is the confirmed outcome of a certification transaction.
Decoding the certificate identifier out of it yields a tagged result so
that a missing event is an explicit branch rather than a silent default.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TransactionStatus(Enum):
    """Ledger-side status of a previously broadcast transaction."""

    CONFIRMED = "confirmed"
    REVERTED = "reverted"
    PENDING = "pending"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class LedgerReceipt:
    """Confirmed transaction receipt.

    Attributes:
        tx_hash: 0x-prefixed transaction hash.
        block_number: Block the transaction was included in.
        status: 1 for success, 0 for reverted.
        raw_logs: Logs emitted by the transaction, as returned by the node.
    """

    tx_hash: str
    block_number: int
    status: int = 1
    raw_logs: tuple[Any, ...] = field(default_factory=tuple)

    @property
    def succeeded(self) -> bool:
        return self.status == 1


@dataclass(frozen=True)
class TokenIdFound:
    """The certification event was present and decoded."""

    token_id: str


@dataclass(frozen=True)
class TokenIdNotFound:
    """No certification event could be decoded from the receipt."""

    reason: str


TokenIdResult = TokenIdFound | TokenIdNotFound
