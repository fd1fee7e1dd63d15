"""EVM ledger client (web3).

Implements LedgerClientProtocol against an EVM chain's JSON-RPC endpoint.
One client is bound to one chain, one certificate contract, and one signer.

Flow of certify():
1. Validate RPC endpoint, contract address, and signing key (no network)
2. Under the signer's nonce lock: build, sign, broadcast
3. Report the tx hash through on_submitted
4. Outside the lock: wait for inclusion, bounded by the confirmation timeout
5. Return the receipt; a status-0 receipt raises TransactionRevertedError

RPC failures are mapped to LedgerError subclasses by ``map_rpc_error``.
"""

from __future__ import annotations

import re
from typing import Any

import structlog
from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import ContractLogicError, TimeExhausted, TransactionNotFound

from src.application.ports.ledger_client import OnSubmitted
from src.config.minting_config import ChainSettings
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
)
from src.domain.models.certifiable_asset import LedgerChain
from src.domain.models.ledger_receipt import (
    LedgerReceipt,
    TokenIdResult,
    TransactionStatus,
)
from src.infrastructure.adapters.ledger.abi import (
    CERTIFICATE_CONTRACT_ABI,
    CERTIFY_FUNCTION_NAME,
)
from src.infrastructure.adapters.ledger.event_decoder import CertifiedEventDecoder
from src.infrastructure.adapters.ledger.nonce_sequencer import NonceSequencer

logger = structlog.get_logger()

_PRIVATE_KEY_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")
_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_hex_address(value: str | None) -> bool:
    """Whether value is a 20-byte 0x-prefixed hex address, in any letter case."""
    if not value:
        return False
    return _ADDRESS_PATTERN.match(value.strip()) is not None


def normalize_private_key(key: str) -> str:
    """Add the 0x prefix a bare hex key is missing."""
    key = key.strip()
    return key if key.startswith(("0x", "0X")) else f"0x{key}"


def _rpc_error_message(exc: BaseException) -> str:
    """Extract the node's message from a web3 / JSON-RPC exception."""
    if exc.args and isinstance(exc.args[0], dict):
        return str(exc.args[0].get("message", exc.args[0]))
    message = getattr(exc, "message", None)
    return str(message or exc)


def map_rpc_error(exc: BaseException, tx_hash: str | None = None) -> LedgerError:
    """Map an exception raised while submitting a transaction.

    Args:
        exc: Exception from web3, eth-account, or the transport.
        tx_hash: Transaction hash, when one is known.

    Returns:
        The LedgerError subclass describing the cause.
    """
    if isinstance(exc, LedgerError):
        return exc
    if isinstance(exc, ContractLogicError):
        return TransactionRevertedError(
            f"Contract rejected the transaction: {_rpc_error_message(exc)}",
            tx_hash=tx_hash,
        )

    message = _rpc_error_message(exc)
    lowered = message.lower()
    if "insufficient funds" in lowered:
        return InsufficientFundsError(message, tx_hash=tx_hash)
    if "replacement transaction underpriced" in lowered or "nonce" in lowered:
        return NonceCollisionError(message, tx_hash=tx_hash)
    if (
        "underpriced" in lowered
        or "fee cap" in lowered
        or "less than block base fee" in lowered
    ):
        return TransactionUnderpricedError(message, tx_hash=tx_hash)
    if "revert" in lowered:
        return TransactionRevertedError(message, tx_hash=tx_hash)
    return BroadcastError(f"Broadcast failed: {message}", tx_hash=tx_hash)


class EvmLedgerClient:
    """Ledger client for EVM chains.

    Attributes:
        chain: Ledger this client submits to.
        contract_reference: Certificate contract address as configured.
        signer_address: Platform signer address, None if the key is unusable.
    """

    def __init__(
        self,
        settings: ChainSettings,
        signing_key: str | None,
        contract_address: str | None,
        confirmation_timeout_seconds: float,
        nonce_sequencer: NonceSequencer | None = None,
        web3: AsyncWeb3 | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Chain id, RPC endpoint, and explorer for the chain.
            signing_key: Hex private key of the platform signer.
            contract_address: Certificate contract address.
            confirmation_timeout_seconds: Max wait for inclusion.
            nonce_sequencer: Shared sequencer; clients for different chains
                may share one because nonces are keyed by signer.
            web3: Preconfigured AsyncWeb3 (for testing). Built lazily from
                the RPC endpoint when omitted.
        """
        self._settings = settings
        self._signing_key = signing_key
        self._contract_address = contract_address
        self._timeout = confirmation_timeout_seconds
        self._nonces = nonce_sequencer or NonceSequencer()
        self._web3 = web3
        self._account: LocalAccount | None = None
        self._decoder = CertifiedEventDecoder(contract_address)
        self._log = logger.bind(
            service=self.__class__.__name__,
            component="ledger",
            chain=settings.chain.value,
        )

    @property
    def chain(self) -> LedgerChain:
        return self._settings.chain

    @property
    def contract_reference(self) -> str | None:
        return self._contract_address

    @property
    def signer_address(self) -> str | None:
        try:
            return self._load_account().address
        except LedgerError:
            return None

    def validate_configuration(self) -> None:
        """Validate endpoint, contract address, and key without network I/O.

        Raises:
            MissingRpcEndpointError: No RPC endpoint for this chain.
            MalformedContractAddressError: Contract address is not an address.
            MissingSigningKeyError: No signing key configured.
            MalformedSigningKeyError: Signing key is not a usable private key.
        """
        if not self._settings.rpc_url:
            raise MissingRpcEndpointError(self.chain.value)
        if not is_hex_address(self._contract_address):
            raise MalformedContractAddressError(self._contract_address)
        self._load_account()

    async def certify(
        self,
        signer_identity: str,
        asset_id: str,
        on_submitted: OnSubmitted | None = None,
    ) -> LedgerReceipt:
        """Submit ``certifyClip(creator, asset_id)`` and wait for confirmation.

        Args:
            signer_identity: Address the certificate is issued to. Falls back
                to the platform signer when it is not a valid address.
            asset_id: Asset being certified.
            on_submitted: Awaited with the tx hash right after broadcast.

        Returns:
            The confirmed receipt.

        Raises:
            LedgerError: Subclass describing the failure.
        """
        self.validate_configuration()
        account = self._load_account()
        w3 = self._client()

        if is_hex_address(signer_identity):
            creator = Web3.to_checksum_address(signer_identity)
        else:
            if signer_identity:
                self._log.warning(
                    "ledger_creator_address_invalid",
                    asset_id=asset_id,
                    creator=signer_identity,
                )
            creator = account.address

        log = self._log.bind(asset_id=asset_id, signer=account.address)
        tx_hash = await self._sign_and_broadcast(w3, account, creator, asset_id, log)
        log = log.bind(tx_hash=tx_hash)
        log.info("ledger_tx_broadcast")

        if on_submitted is not None:
            await on_submitted(tx_hash)

        return await self._wait_for_receipt(w3, tx_hash, log)

    def decode_token_id(self, receipt: LedgerReceipt) -> TokenIdResult:
        return self._decoder.decode(receipt)

    async def get_transaction_status(
        self, tx_hash: str
    ) -> tuple[TransactionStatus, LedgerReceipt | None]:
        """Ask the node about a previously broadcast transaction.

        Raises:
            LedgerError: The node could not be queried.
        """
        if not self._settings.rpc_url:
            raise MissingRpcEndpointError(self.chain.value)
        w3 = self._client()
        try:
            try:
                receipt = await w3.eth.get_transaction_receipt(tx_hash)
            except TransactionNotFound:
                try:
                    await w3.eth.get_transaction(tx_hash)
                except TransactionNotFound:
                    return TransactionStatus.UNKNOWN, None
                return TransactionStatus.PENDING, None
        except LedgerError:
            raise
        except Exception as exc:
            raise LedgerError(
                f"Transaction status query failed: {_rpc_error_message(exc)}",
                tx_hash=tx_hash,
            ) from exc

        ledger_receipt = self._to_receipt(tx_hash, receipt)
        if not ledger_receipt.succeeded:
            return TransactionStatus.REVERTED, ledger_receipt
        return TransactionStatus.CONFIRMED, ledger_receipt

    def explorer_url(self, tx_hash: str) -> str:
        return self._settings.explorer_tx_url(tx_hash)

    def _load_account(self) -> LocalAccount:
        if self._account is not None:
            return self._account
        if not self._signing_key or not self._signing_key.strip():
            raise MissingSigningKeyError()
        key = normalize_private_key(self._signing_key)
        if not _PRIVATE_KEY_PATTERN.match(key):
            raise MalformedSigningKeyError("expected 32 bytes of hex")
        try:
            self._account = Account.from_key(key)
        except (ValueError, TypeError) as exc:
            raise MalformedSigningKeyError(str(exc)) from exc
        return self._account

    def _client(self) -> AsyncWeb3:
        if self._web3 is None:
            self._web3 = AsyncWeb3(AsyncHTTPProvider(self._settings.rpc_url))
        return self._web3

    async def _sign_and_broadcast(
        self,
        w3: AsyncWeb3,
        account: LocalAccount,
        creator: str,
        asset_id: str,
        log: structlog.BoundLogger,
    ) -> str:
        assert self._contract_address is not None
        contract = w3.eth.contract(
            address=Web3.to_checksum_address(self._contract_address),
            abi=CERTIFICATE_CONTRACT_ABI,
        )

        async def fetch_pending_nonce() -> int:
            return await w3.eth.get_transaction_count(account.address, "pending")

        try:
            async with self._nonces.reserve(
                account.address, fetch_pending_nonce
            ) as reservation:
                function = getattr(contract.functions, CERTIFY_FUNCTION_NAME)
                tx = await function(creator, asset_id).build_transaction(
                    {
                        "from": account.address,
                        "nonce": reservation.nonce,
                        "chainId": self._settings.chain_id,
                    }
                )
                signed = account.sign_transaction(tx)
                raw_hash = await w3.eth.send_raw_transaction(signed.raw_transaction)
                reservation.commit()
        except Exception as exc:
            error = map_rpc_error(exc)
            if isinstance(error, NonceCollisionError):
                self._nonces.invalidate(account.address)
            log.warning(
                "ledger_tx_submission_failed",
                error_type=type(error).__name__,
                error=str(exc),
            )
            if error is exc:
                raise
            raise error from exc

        return Web3.to_hex(raw_hash)

    async def _wait_for_receipt(
        self, w3: AsyncWeb3, tx_hash: str, log: structlog.BoundLogger
    ) -> LedgerReceipt:
        try:
            receipt = await w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self._timeout
            )
        except TimeExhausted as exc:
            log.warning("ledger_tx_confirmation_timeout", timeout_seconds=self._timeout)
            raise ConfirmationTimeoutError(
                f"Transaction not confirmed within {self._timeout:g}s",
                tx_hash=tx_hash,
            ) from exc
        except Exception as exc:
            log.warning("ledger_tx_confirmation_error", error=str(exc))
            raise ConfirmationTimeoutError(
                f"Lost contact with node while awaiting confirmation: "
                f"{_rpc_error_message(exc)}",
                tx_hash=tx_hash,
            ) from exc

        ledger_receipt = self._to_receipt(tx_hash, receipt)
        if not ledger_receipt.succeeded:
            log.warning("ledger_tx_reverted", block_number=ledger_receipt.block_number)
            raise TransactionRevertedError(
                "Transaction reverted on-chain", tx_hash=tx_hash
            )
        log.info("ledger_tx_included", block_number=ledger_receipt.block_number)
        return ledger_receipt

    @staticmethod
    def _to_receipt(tx_hash: str, receipt: Any) -> LedgerReceipt:
        return LedgerReceipt(
            tx_hash=tx_hash,
            block_number=int(receipt["blockNumber"]),
            status=int(receipt["status"]),
            raw_logs=tuple(receipt.get("logs") or ()),
        )
