"""State transition errors for the certification state machine."""

from __future__ import annotations

from typing import TYPE_CHECKING

from src.domain.exceptions import CertificationDomainError

if TYPE_CHECKING:
    from src.domain.models.certifiable_asset import CertStatus


class InvalidCertStatusTransitionError(CertificationDomainError):
    """Raised when a transition outside the transition matrix is attempted.

    Attributes:
        from_status: Current status of the asset.
        to_status: Attempted target status.
        allowed_transitions: Valid target statuses from the current status.
    """

    def __init__(
        self,
        from_status: CertStatus,
        to_status: CertStatus,
        allowed_transitions: list[CertStatus] | None = None,
    ) -> None:
        self.from_status = from_status
        self.to_status = to_status
        self.allowed_transitions = allowed_transitions or []

        allowed_str = (
            f" Valid transitions: {[s.value for s in self.allowed_transitions]}"
            if self.allowed_transitions
            else ""
        )
        super().__init__(
            f"Invalid certification transition: {from_status.value} -> "
            f"{to_status.value}.{allowed_str}"
        )


class AssetAlreadyCertifiedError(CertificationDomainError):
    """Raised when attempting to change the status of a minted asset.

    Attributes:
        asset_id: Identifier of the minted asset.
    """

    def __init__(self, asset_id: str) -> None:
        self.asset_id = asset_id
        super().__init__(
            f"Asset {asset_id} is already certified. Minted assets cannot be modified."
        )
