"""
Integration test configuration with testcontainers.

Provides a session-scoped PostgreSQL 16 container and a per-test async
session factory with the certification schema created and emptied.

Usage:
    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_example(session_factory: async_sessionmaker[AsyncSession]) -> None:
        store = PostgresAssetStore(session_factory)
        ...

Note: Docker must be running for these fixtures to work.
"""

from collections.abc import AsyncGenerator, Generator

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from testcontainers.postgres import PostgresContainer

from src.infrastructure.adapters.persistence import (
    PostgresAssetStore,
    PostgresAuditLog,
)


@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """Session-scoped PostgreSQL 16 container, started once per run."""
    with PostgresContainer("postgres:16-alpine") as postgres:
        yield postgres


@pytest.fixture(scope="session")
def postgres_async_url(postgres_container: PostgresContainer) -> str:
    """Async (asyncpg) connection URL for the container.

    testcontainers returns a psycopg2 URL by default.
    """
    sync_url = postgres_container.get_connection_url()
    async_url: str = sync_url.replace(
        "postgresql+psycopg2://", "postgresql+asyncpg://"
    ).replace("postgresql://", "postgresql+asyncpg://")
    return async_url


@pytest.fixture
async def session_factory(
    postgres_async_url: str,
) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Per-test session factory over an empty certification schema."""
    engine = create_async_engine(postgres_async_url, echo=False)
    factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    await PostgresAssetStore(factory).create_schema()
    await PostgresAuditLog(factory).create_schema()
    async with factory() as session:
        await session.execute(
            text("TRUNCATE certifiable_assets, certification_audit_log")
        )
        await session.commit()

    yield factory

    await engine.dispose()
