"""Audit log port.

Append-only record of certification lifecycle events. Entries are never
read back to make control decisions.
"""

from __future__ import annotations

from typing import Protocol

from src.domain.models.audit_entry import AuditAck, AuditLogEntry


class AuditLogProtocol(Protocol):
    """Protocol for audit log persistence."""

    async def append(self, entry: AuditLogEntry) -> AuditAck:
        """Append an entry.

        Raises:
            Any backend error. Callers log append failures and carry on;
            a failed append never changes asset state.
        """
        ...

    async def list_for_asset(self, asset_id: str) -> list[AuditLogEntry]:
        """Return entries for an asset, oldest first."""
        ...
