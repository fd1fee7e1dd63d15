"""Caller context and authorization decision models."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CallerContext:
    """Identity of whoever triggered a certification request.

    Attributes:
        caller_id: Owner identity asserted by the upstream gateway, if any.
        service_credentials: Bearer credential presented by a trusted
            service caller, if any.
    """

    caller_id: str | None = None
    service_credentials: str | None = None

    @property
    def actor_id(self) -> str:
        """Identifier recorded in audit entries."""
        return self.caller_id or "anonymous"


@dataclass(frozen=True)
class AuthorizationDecision:
    """Outcome of a successful authorization.

    Attributes:
        actor_id: Identity to record as the actor.
        is_service: True when the caller is the trusted service identity.
        visibility_scope: Owner scope for asset lookups; None means unscoped
            (service identity sees every asset).
    """

    actor_id: str
    is_service: bool
    visibility_scope: str | None
