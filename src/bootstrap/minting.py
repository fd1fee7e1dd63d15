"""Bootstrap wiring for certification minting.

Builds one EvmLedgerClient per supported chain, sharing a NonceSequencer
so that the platform signer never reuses a nonce across chains or
requests, and wires the MintingController and MintReconciliationService.

Environment Variables:
- DATABASE_URL: When set, assets and audit entries live in PostgreSQL.
  Otherwise in-memory stores are used (development only).
- See src/config/minting_config.py for the ledger settings.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from structlog import get_logger

from src.application.ports.access_control import AccessControlProtocol
from src.application.ports.asset_store import AssetStoreProtocol
from src.application.ports.audit_log import AuditLogProtocol
from src.application.ports.time_authority import TimeAuthorityProtocol
from src.application.services.mint_reconciliation_service import (
    MintReconciliationService,
)
from src.application.services.minting_controller import MintingController
from src.application.services.time_authority_service import SystemTimeAuthority
from src.bootstrap.database import get_session_factory
from src.config.minting_config import MintingConfig
from src.domain.models.certifiable_asset import LedgerChain
from src.infrastructure.adapters.access import ServiceTokenAccessControl
from src.infrastructure.adapters.ledger import EvmLedgerClient, NonceSequencer
from src.infrastructure.adapters.persistence import (
    PostgresAssetStore,
    PostgresAuditLog,
)
from src.infrastructure.monitoring.certification_metrics import (
    get_certification_metrics,
)
from src.infrastructure.stubs.asset_store_stub import AssetStoreStub
from src.infrastructure.stubs.audit_log_stub import AuditLogStub

logger = get_logger()


@dataclass(frozen=True)
class MintingComponents:
    """Wired certification components sharing the same collaborators."""

    config: MintingConfig
    asset_store: AssetStoreProtocol
    audit_log: AuditLogProtocol
    access_control: AccessControlProtocol
    controller: MintingController
    reconciler: MintReconciliationService


def build_ledger_clients(
    config: MintingConfig,
    nonce_sequencer: NonceSequencer | None = None,
) -> dict[LedgerChain, EvmLedgerClient]:
    """Build one ledger client per supported chain.

    Clients are built even when settings are missing; the problem surfaces
    as a ConfigurationError when a mint is requested on that chain.
    """
    sequencer = nonce_sequencer or NonceSequencer()
    return {
        chain: EvmLedgerClient(
            settings=config.chain_settings(chain),
            signing_key=config.signing_key,
            contract_address=config.contract_address,
            confirmation_timeout_seconds=config.confirmation_timeout_seconds,
            nonce_sequencer=sequencer,
        )
        for chain in config.supported_chains
    }


def build_stores() -> tuple[AssetStoreProtocol, AuditLogProtocol]:
    """Select PostgreSQL stores when DATABASE_URL is set, stubs otherwise."""
    if os.environ.get("DATABASE_URL"):
        session_factory = get_session_factory()
        return PostgresAssetStore(session_factory), PostgresAuditLog(session_factory)

    logger.warning(
        "using_in_memory_stores",
        component="minting_bootstrap",
        reason="DATABASE_URL not set",
    )
    return AssetStoreStub(), AuditLogStub()


def build_minting_components(
    config: MintingConfig | None = None,
    asset_store: AssetStoreProtocol | None = None,
    audit_log: AuditLogProtocol | None = None,
    time_authority: TimeAuthorityProtocol | None = None,
) -> MintingComponents:
    """Wire the controller and reconciler around shared collaborators."""
    config = config or MintingConfig.from_environment()
    if asset_store is None or audit_log is None:
        default_store, default_log = build_stores()
        asset_store = asset_store or default_store
        audit_log = audit_log or default_log
    time_authority = time_authority or SystemTimeAuthority()
    metrics = get_certification_metrics()
    ledger_clients = build_ledger_clients(config)

    access_control = ServiceTokenAccessControl(
        asset_store=asset_store,
        service_token=config.service_token,
        service_identity=config.service_identity,
    )
    controller = MintingController(
        asset_store=asset_store,
        access_control=access_control,
        audit_log=audit_log,
        ledger_clients=ledger_clients,
        time_authority=time_authority,
        default_chain=config.default_chain,
        lease_seconds=config.lease_seconds,
        metrics=metrics,
    )
    reconciler = MintReconciliationService(
        asset_store=asset_store,
        audit_log=audit_log,
        ledger_clients=ledger_clients,
        time_authority=time_authority,
        lease_seconds=config.lease_seconds,
        metrics=metrics,
    )
    logger.info(
        "minting_components_built",
        component="minting_bootstrap",
        chains=[chain.value for chain in ledger_clients],
        default_chain=config.default_chain.value,
    )
    return MintingComponents(
        config=config,
        asset_store=asset_store,
        audit_log=audit_log,
        access_control=access_control,
        controller=controller,
        reconciler=reconciler,
    )


_components: MintingComponents | None = None


def get_minting_components() -> MintingComponents:
    """Get the process-wide minting components, building them on first use."""
    global _components
    if _components is None:
        _components = build_minting_components()
    return _components


def set_minting_components(components: MintingComponents) -> None:
    """Set custom minting components (testing/override)."""
    global _components
    _components = components


def reset_minting_components() -> None:
    """Reset minting singleton (testing cleanup)."""
    global _components
    _components = None


async def prepare_storage(components: MintingComponents) -> None:
    """Create the PostgreSQL schema when PostgreSQL stores are wired."""
    for store in (components.asset_store, components.audit_log):
        if isinstance(store, (PostgresAssetStore, PostgresAuditLog)):
            await store.create_schema()
