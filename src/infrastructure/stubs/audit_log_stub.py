"""Audit log stub implementation.

In-memory AuditLogProtocol for development and testing.
"""

from __future__ import annotations

from src.application.ports.audit_log import AuditLogProtocol
from src.domain.models.audit_entry import AuditAck, AuditAction, AuditLogEntry


class AuditLogStub(AuditLogProtocol):
    """In-memory append-only audit log.

    Attributes:
        entries: Appended entries in order.
        fail_appends: When True, append() raises to simulate an outage.
    """

    def __init__(self, fail_appends: bool = False) -> None:
        self.entries: list[AuditLogEntry] = []
        self.fail_appends = fail_appends

    async def append(self, entry: AuditLogEntry) -> AuditAck:
        if self.fail_appends:
            raise ConnectionError("audit log unavailable")
        self.entries.append(entry)
        return AuditAck(entry_id=entry.id)

    async def list_for_asset(self, asset_id: str) -> list[AuditLogEntry]:
        return [entry for entry in self.entries if entry.asset_id == asset_id]

    def actions_for(self, asset_id: str) -> list[AuditAction]:
        """Actions recorded for an asset, in order."""
        return [entry.action for entry in self.entries if entry.asset_id == asset_id]

    def clear(self) -> None:
        """Clear all entries (for testing)."""
        self.entries.clear()
