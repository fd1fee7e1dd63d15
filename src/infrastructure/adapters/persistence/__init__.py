"""PostgreSQL persistence adapters (SQLAlchemy async)."""

from src.infrastructure.adapters.persistence.postgres_asset_store import (
    PostgresAssetStore,
)
from src.infrastructure.adapters.persistence.postgres_audit_log import (
    PostgresAuditLog,
)

__all__ = ["PostgresAssetStore", "PostgresAuditLog"]
