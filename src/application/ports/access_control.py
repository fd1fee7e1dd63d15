"""Access control port.

A caller may certify an asset only when it is the recorded owner of that
asset or the trusted service identity. This is the single capability check
the certification flow performs.
"""

from __future__ import annotations

from typing import Protocol

from src.domain.models.caller_context import AuthorizationDecision, CallerContext


class AccessControlProtocol(Protocol):
    """Protocol for certification authorization.

    Methods:
        is_service_caller: Whether credentials belong to the service identity
        resolve_effective_owner: Owner id the caller acts as, or None
        authorize: Produce a decision or raise
    """

    def is_service_caller(self, credentials: str | None) -> bool:
        """Check whether the presented credentials are the service identity's."""
        ...

    async def resolve_effective_owner(
        self, caller: CallerContext, asset_id: str
    ) -> str | None:
        """Resolve which owner the caller acts as for this asset.

        Returns:
            The owner id, or None when the caller is denied.
        """
        ...

    async def authorize(
        self, caller: CallerContext, asset_id: str
    ) -> AuthorizationDecision:
        """Authorize the caller to request certification of an asset.

        Args:
            caller: Caller context from the request.
            asset_id: Asset the caller wants certified.

        Returns:
            AuthorizationDecision carrying the visibility scope to load with.

        Raises:
            CertificationAuthorizationError: If the caller is neither the
                owner nor the service identity.
        """
        ...
