"""Audit log entry domain model.

Audit entries are append-only records of certification lifecycle events.
They are observational: nothing in the certification flow reads them back
to make a control decision.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any
from uuid import UUID, uuid4


class AuditAction(Enum):
    """Certification lifecycle actions recorded in the audit log."""

    CERTIFICATION_REQUESTED = "certification_requested"
    CERTIFIED = "certified"
    CERTIFICATION_FAILED = "certification_failed"
    CERTIFICATION_OUTCOME_UNKNOWN = "certification_outcome_unknown"
    CERTIFICATION_RECONCILED = "certification_reconciled"
    CERTIFICATE_IDENTIFIER_RECONFIRMED = "certificate_identifier_reconfirmed"


@dataclass(frozen=True, eq=True)
class AuditLogEntry:
    """Immutable audit record.

    Attributes:
        asset_id: Asset the action concerns.
        action: Lifecycle action.
        actor_id: Caller (owner id or service identity) that triggered it.
        timestamp: When the action happened.
        details: Structured, read-only details.
        id: Unique entry identifier.
    """

    asset_id: str
    action: AuditAction
    actor_id: str
    timestamp: datetime
    details: MappingProxyType[str, Any] = field(
        default_factory=lambda: MappingProxyType({})
    )
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        """Freeze the details mapping."""
        if not isinstance(self.details, MappingProxyType):
            object.__setattr__(self, "details", MappingProxyType(dict(self.details)))

    def to_dict(self) -> dict[str, Any]:
        """Serialize for storage or logging."""
        return {
            "id": str(self.id),
            "asset_id": self.asset_id,
            "action": self.action.value,
            "actor_id": self.actor_id,
            "timestamp": self.timestamp.isoformat(),
            "details": dict(self.details),
        }


@dataclass(frozen=True)
class AuditAck:
    """Acknowledgement returned by a successful append."""

    entry_id: UUID
