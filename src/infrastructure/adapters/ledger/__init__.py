"""EVM ledger adapter.

Provides the web3-backed LedgerClientProtocol implementation together with
its nonce sequencer and certification event decoder.
"""

from src.infrastructure.adapters.ledger.event_decoder import (
    CERTIFIED_EVENT_TOPIC,
    CertifiedEventDecoder,
)
from src.infrastructure.adapters.ledger.evm_ledger_client import (
    EvmLedgerClient,
    is_hex_address,
    map_rpc_error,
    normalize_private_key,
)
from src.infrastructure.adapters.ledger.nonce_sequencer import (
    NonceReservation,
    NonceSequencer,
)

__all__ = [
    "CERTIFIED_EVENT_TOPIC",
    "CertifiedEventDecoder",
    "EvmLedgerClient",
    "NonceReservation",
    "NonceSequencer",
    "is_hex_address",
    "map_rpc_error",
    "normalize_private_key",
]
