"""Certificate minting configuration.

This module defines configuration for ledger clients, the minting lease,
and the trusted service identity, with environment variable overrides.

Signer and contract settings are NOT validated at load time: a missing or
malformed value is reported by the ledger client when a certification is
requested, as a configuration error with no asset mutation.

Environment Variables (Ledger):
- POLYGON_RPC_URL: RPC endpoint for Polygon mainnet
- POLYGON_AMOY_RPC_URL: RPC endpoint for the Polygon Amoy testnet
- CERT_SIGNER_PRIVATE_KEY: Platform signer key (falls back to POLYGON_PRIVATE_KEY)
- CERT_CONTRACT_ADDRESS: Certificate contract address
- CERT_DEFAULT_CHAIN: Chain used when a request names none (default: polygon)

Environment Variables (Timing):
- CERT_CONFIRMATION_TIMEOUT_SECONDS: Max wait for inclusion (default: 120)
- CERT_MINTING_LEASE_SECONDS: Lease on the minting state (default: 600)

Environment Variables (Access):
- CERT_SERVICE_TOKEN: Bearer token presented by the trusted service
- CERT_SERVICE_IDENTITY: Actor id recorded for service callers
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from src.domain.models.certifiable_asset import LedgerChain

DEFAULT_CONTRACT_ADDRESS = "0xB5627bDbA3ab392782E7E542a972013E3e7F37C3"
DEFAULT_SERVICE_IDENTITY = "service:certification"


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float_env(key: str, default: float) -> float:
    """Get float environment variable with default."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_str_env(*keys: str) -> str | None:
    """Return the first non-empty value among the given variables."""
    for key in keys:
        value = os.environ.get(key, "").strip()
        if value:
            return value
    return None


@dataclass(frozen=True)
class ChainSettings:
    """Static and configured settings for one ledger.

    Attributes:
        chain: Ledger identifier.
        chain_id: EIP-155 chain id.
        rpc_url: Configured RPC endpoint, if any.
        explorer_base_url: Block explorer root.
    """

    chain: LedgerChain
    chain_id: int
    rpc_url: str | None
    explorer_base_url: str

    def explorer_tx_url(self, tx_hash: str) -> str:
        return f"{self.explorer_base_url}/tx/{tx_hash}"


_CHAIN_IDS: dict[LedgerChain, int] = {
    LedgerChain.POLYGON: 137,
    LedgerChain.POLYGON_AMOY: 80002,
}

_EXPLORERS: dict[LedgerChain, str] = {
    LedgerChain.POLYGON: "https://polygonscan.com",
    LedgerChain.POLYGON_AMOY: "https://amoy.polygonscan.com",
}


@dataclass(frozen=True)
class MintingConfig:
    """Configuration for certificate minting.

    Attributes:
        signing_key: Hex private key of the platform signer.
        contract_address: Certificate contract address.
        polygon_rpc_url: Polygon mainnet RPC endpoint.
        polygon_amoy_rpc_url: Polygon Amoy RPC endpoint.
        default_chain: Chain used when a request names none.
        confirmation_timeout_seconds: Max wait for transaction inclusion.
        lease_seconds: Lease on the minting state. Must exceed the
            confirmation timeout so a live request is never reconciled.
        service_token: Bearer token of the trusted service identity.
        service_identity: Actor id recorded for service callers.
    """

    signing_key: str | None = None
    contract_address: str | None = DEFAULT_CONTRACT_ADDRESS
    polygon_rpc_url: str | None = None
    polygon_amoy_rpc_url: str | None = None
    default_chain: LedgerChain = LedgerChain.POLYGON
    confirmation_timeout_seconds: float = 120.0
    lease_seconds: int = 600
    service_token: str | None = None
    service_identity: str = DEFAULT_SERVICE_IDENTITY

    def __post_init__(self) -> None:
        """Validate timing values."""
        if self.confirmation_timeout_seconds <= 0:
            raise ValueError(
                "confirmation_timeout_seconds must be positive, "
                f"got {self.confirmation_timeout_seconds}"
            )
        if self.lease_seconds <= self.confirmation_timeout_seconds:
            raise ValueError(
                f"lease_seconds ({self.lease_seconds}) must exceed "
                f"confirmation_timeout_seconds ({self.confirmation_timeout_seconds})"
            )
        if not self.service_identity:
            raise ValueError("service_identity must not be empty")

    def chain_settings(self, chain: LedgerChain) -> ChainSettings:
        """Settings for one supported chain."""
        rpc_urls = {
            LedgerChain.POLYGON: self.polygon_rpc_url,
            LedgerChain.POLYGON_AMOY: self.polygon_amoy_rpc_url,
        }
        return ChainSettings(
            chain=chain,
            chain_id=_CHAIN_IDS[chain],
            rpc_url=rpc_urls[chain],
            explorer_base_url=_EXPLORERS[chain],
        )

    @property
    def supported_chains(self) -> tuple[LedgerChain, ...]:
        return tuple(LedgerChain)

    @classmethod
    def from_environment(cls) -> MintingConfig:
        """Create config from environment variables with defaults.

        Returns:
            MintingConfig with values from environment or defaults.

        Raises:
            ValueError: If CERT_DEFAULT_CHAIN names an unsupported chain or
                the timing values are inconsistent.
        """
        default_chain_name = _get_str_env("CERT_DEFAULT_CHAIN") or "polygon"
        try:
            default_chain = LedgerChain(default_chain_name.lower())
        except ValueError as exc:
            raise ValueError(
                f"CERT_DEFAULT_CHAIN must be one of "
                f"{[c.value for c in LedgerChain]}, got {default_chain_name!r}"
            ) from exc

        return cls(
            signing_key=_get_str_env("CERT_SIGNER_PRIVATE_KEY", "POLYGON_PRIVATE_KEY"),
            contract_address=_get_str_env("CERT_CONTRACT_ADDRESS")
            or DEFAULT_CONTRACT_ADDRESS,
            polygon_rpc_url=_get_str_env("POLYGON_RPC_URL"),
            polygon_amoy_rpc_url=_get_str_env("POLYGON_AMOY_RPC_URL"),
            default_chain=default_chain,
            confirmation_timeout_seconds=_get_float_env(
                "CERT_CONFIRMATION_TIMEOUT_SECONDS", 120.0
            ),
            lease_seconds=_get_int_env("CERT_MINTING_LEASE_SECONDS", 600),
            service_token=_get_str_env("CERT_SERVICE_TOKEN"),
            service_identity=_get_str_env("CERT_SERVICE_IDENTITY")
            or DEFAULT_SERVICE_IDENTITY,
        )


# Testing config with short timings for unit tests
TEST_MINTING_CONFIG = MintingConfig(
    signing_key="0x" + "11" * 32,
    polygon_rpc_url="http://localhost:8545",
    polygon_amoy_rpc_url="http://localhost:8546",
    confirmation_timeout_seconds=5.0,
    lease_seconds=30,
    service_token="test-service-token",
)
