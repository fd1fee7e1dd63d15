"""Service-token access control.

Implements AccessControlProtocol for a deployment behind a gateway that
asserts the caller's owner identity. The trusted service proves itself
with a shared bearer token, compared in constant time.
"""

from __future__ import annotations

import hmac

from structlog import get_logger

from src.application.ports.asset_store import AssetStoreProtocol
from src.domain.errors.certification import CertificationAuthorizationError
from src.domain.models.caller_context import AuthorizationDecision, CallerContext

logger = get_logger()


class ServiceTokenAccessControl:
    """Authorizes the recorded owner or the trusted service identity.

    Attributes:
        _asset_store: Used unscoped to look up the recorded owner.
        _service_token: Shared secret of the service identity. When None,
            no caller can authenticate as the service.
        _service_identity: Actor id recorded for service callers.
    """

    def __init__(
        self,
        asset_store: AssetStoreProtocol,
        service_token: str | None,
        service_identity: str,
    ) -> None:
        self._asset_store = asset_store
        self._service_token = service_token
        self._service_identity = service_identity

    def is_service_caller(self, credentials: str | None) -> bool:
        if not credentials or not self._service_token:
            return False
        return hmac.compare_digest(
            credentials.encode("utf-8"), self._service_token.encode("utf-8")
        )

    async def resolve_effective_owner(
        self, caller: CallerContext, asset_id: str
    ) -> str | None:
        asset = await self._asset_store.get(asset_id, None)
        if self.is_service_caller(caller.service_credentials):
            return asset.owner_id if asset is not None else None
        if not caller.caller_id:
            return None
        if asset is None:
            # Unknown assets resolve to the caller so the load reports not found.
            return caller.caller_id
        return asset.owner_id if asset.owner_id == caller.caller_id else None

    async def authorize(
        self, caller: CallerContext, asset_id: str
    ) -> AuthorizationDecision:
        if self.is_service_caller(caller.service_credentials):
            return AuthorizationDecision(
                actor_id=self._service_identity,
                is_service=True,
                visibility_scope=None,
            )

        if caller.service_credentials:
            logger.warning("service_token_rejected", asset_id=asset_id)

        owner_id = await self.resolve_effective_owner(caller, asset_id)
        if owner_id is None or caller.caller_id is None:
            logger.info(
                "certification_authorization_denied",
                asset_id=asset_id,
                caller_id=caller.caller_id,
            )
            raise CertificationAuthorizationError()

        return AuthorizationDecision(
            actor_id=caller.caller_id,
            is_service=False,
            visibility_scope=caller.caller_id,
        )
