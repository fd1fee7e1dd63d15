"""
Pytest configuration and shared fixtures for certification tests.

Testing Standards:
- All async tests use pytest.mark.asyncio (auto mode enabled in pyproject.toml)
- Use AsyncMock for async function mocking
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/ and are marked integration
"""

from __future__ import annotations

import pytest

from src.domain.models.caller_context import CallerContext
from src.infrastructure.stubs import AssetStoreStub, AuditLogStub, LedgerClientStub
from tests.helpers import FakeTimeAuthority
from tests.helpers.assets import OWNER_ID, SERVICE_TOKEN


@pytest.fixture
def project_version() -> str:
    """Provide the current project version for tests."""
    from src import __version__

    return __version__


@pytest.fixture
def fake_time_authority() -> FakeTimeAuthority:
    """Clock frozen at 2026-01-01T00:00:00 UTC."""
    return FakeTimeAuthority()


@pytest.fixture
def asset_store() -> AssetStoreStub:
    return AssetStoreStub()


@pytest.fixture
def audit_log() -> AuditLogStub:
    return AuditLogStub()


@pytest.fixture
def ledger_client() -> LedgerClientStub:
    return LedgerClientStub()


@pytest.fixture
def owner_caller() -> CallerContext:
    return CallerContext(caller_id=OWNER_ID)


@pytest.fixture
def service_caller() -> CallerContext:
    return CallerContext(service_credentials=SERVICE_TOKEN)
