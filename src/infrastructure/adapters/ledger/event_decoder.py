"""Certification event decoder.

Recovers the certificate token id from a confirmed receipt by matching the
``ClipCertified(address,string,uint256)`` event emitted by the certificate
contract. ``creator`` and ``tokenId`` are indexed, so the token id is read
straight from the third topic without decoding the data section.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from hexbytes import HexBytes
from web3 import Web3

from src.domain.models.ledger_receipt import (
    LedgerReceipt,
    TokenIdFound,
    TokenIdNotFound,
    TokenIdResult,
)
from src.infrastructure.adapters.ledger.abi import CERTIFIED_EVENT_NAME

CERTIFIED_EVENT_SIGNATURE = f"{CERTIFIED_EVENT_NAME}(address,string,uint256)"
CERTIFIED_EVENT_TOPIC: HexBytes = HexBytes(Web3.keccak(text=CERTIFIED_EVENT_SIGNATURE))


def _field(log: Any, name: str) -> Any:
    if isinstance(log, Mapping):
        return log.get(name)
    return getattr(log, name, None)


class CertifiedEventDecoder:
    """Typed decoder for the certification event.

    Args:
        contract_address: Only logs emitted by this address are considered.
            None accepts logs from any address.
    """

    def __init__(self, contract_address: str | None = None) -> None:
        self._contract_address = contract_address.lower() if contract_address else None

    def decode(self, receipt: LedgerReceipt) -> TokenIdResult:
        """Decode the token id, or explain why it could not be found."""
        if not receipt.raw_logs:
            return TokenIdNotFound(reason="receipt has no logs")

        for log in receipt.raw_logs:
            address = _field(log, "address")
            if (
                self._contract_address is not None
                and address is not None
                and str(address).lower() != self._contract_address
            ):
                continue

            topics = [HexBytes(topic) for topic in (_field(log, "topics") or [])]
            if not topics or topics[0] != CERTIFIED_EVENT_TOPIC:
                continue
            if len(topics) < 3:
                return TokenIdNotFound(
                    reason=f"{CERTIFIED_EVENT_NAME} event is missing the tokenId topic"
                )
            return TokenIdFound(token_id=str(int.from_bytes(topics[2], "big")))

        return TokenIdNotFound(
            reason=f"no {CERTIFIED_EVENT_NAME} event in {len(receipt.raw_logs)} log(s)"
        )
