"""Startup and shutdown hooks for the certification API.

On startup:
1. Configure structured logging
2. Wire the minting components (fails fast on an invalid CERT_DEFAULT_CHAIN)
3. Create the PostgreSQL schema when PostgreSQL stores are in use

Ledger settings (signing key, contract, RPC endpoints) are validated per
request, not here.
"""

from structlog import get_logger

from src.bootstrap.database import close_database_engine
from src.bootstrap.logging import configure_logging
from src.bootstrap.minting import get_minting_components, prepare_storage

logger = get_logger()


async def on_startup() -> None:
    """Prepare the service to accept certification requests."""
    configure_logging()
    components = get_minting_components()

    await prepare_storage(components)

    logger.info(
        "certification_service_started",
        default_chain=components.config.default_chain.value,
        service_identity_configured=components.config.service_token is not None,
    )


async def on_shutdown() -> None:
    """Release pooled database connections."""
    await close_database_engine()
    logger.info("certification_service_stopped")
