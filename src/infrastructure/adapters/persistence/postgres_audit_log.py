"""PostgreSQL audit log (SQLAlchemy async).

Implements AuditLogProtocol against the append-only
``certification_audit_log`` table. Rows are only ever inserted.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.domain.models.audit_entry import AuditAck, AuditAction, AuditLogEntry

SCHEMA_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS certification_audit_log (
        id UUID PRIMARY KEY,
        asset_id TEXT NOT NULL,
        action TEXT NOT NULL,
        actor_id TEXT NOT NULL,
        timestamp TIMESTAMPTZ NOT NULL,
        details JSONB NOT NULL DEFAULT '{}'::jsonb
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_certification_audit_log_asset
    ON certification_audit_log (asset_id, timestamp)
    """,
)


def _row_to_entry(row: Mapping[str, Any]) -> AuditLogEntry:
    details = row["details"]
    if isinstance(details, str):
        details = json.loads(details)
    return AuditLogEntry(
        id=row["id"],
        asset_id=row["asset_id"],
        action=AuditAction(row["action"]),
        actor_id=row["actor_id"],
        timestamp=row["timestamp"],
        details=details or {},
    )


class PostgresAuditLog:
    """AuditLogProtocol implementation backed by PostgreSQL."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create_schema(self) -> None:
        """Create the table and index if they do not exist."""
        async with self._session_factory() as session:
            for statement in SCHEMA_STATEMENTS:
                await session.execute(text(statement))
            await session.commit()

    async def append(self, entry: AuditLogEntry) -> AuditAck:
        async with self._session_factory() as session:
            await session.execute(
                text("""
                    INSERT INTO certification_audit_log
                        (id, asset_id, action, actor_id, timestamp, details)
                    VALUES
                        (:id, :asset_id, :action, :actor_id, :timestamp,
                         CAST(:details AS JSONB))
                """),
                {
                    "id": entry.id,
                    "asset_id": entry.asset_id,
                    "action": entry.action.value,
                    "actor_id": entry.actor_id,
                    "timestamp": entry.timestamp,
                    "details": json.dumps(dict(entry.details), default=str),
                },
            )
            await session.commit()
        return AuditAck(entry_id=entry.id)

    async def list_for_asset(self, asset_id: str) -> list[AuditLogEntry]:
        async with self._session_factory() as session:
            result = await session.execute(
                text("""
                    SELECT id, asset_id, action, actor_id, timestamp, details
                    FROM certification_audit_log
                    WHERE asset_id = :asset_id
                    ORDER BY timestamp, id
                """),
                {"asset_id": asset_id},
            )
            rows = result.mappings().all()
        return [_row_to_entry(row) for row in rows]
