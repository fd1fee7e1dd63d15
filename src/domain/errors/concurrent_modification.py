"""Concurrent modification error for conditional status updates.

Raised by asset stores when a compare-and-set on ``cert_status`` finds a
status other than the one the caller observed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from src.domain.exceptions import CertificationDomainError

if TYPE_CHECKING:
    from src.domain.models.certifiable_asset import CertStatus


class ConcurrentModificationError(CertificationDomainError):
    """Raised when a CAS fails because the status changed concurrently.

    This is a recoverable error - the caller should re-read the asset
    and decide whether to retry or abort.

    Attributes:
        asset_id: Asset that was being updated.
        expected_status: Status the caller expected to be current.
        operation: Description of the failed operation.
    """

    def __init__(
        self,
        asset_id: str,
        expected_status: CertStatus,
        operation: str = "cert_status_update",
    ) -> None:
        """Initialize concurrent modification error.

        Args:
            asset_id: Identifier of the asset being updated.
            expected_status: The status expected for the CAS operation.
            operation: Description of the failed operation.
        """
        self.asset_id = asset_id
        self.expected_status = expected_status
        self.operation = operation
        super().__init__(
            f"Concurrent modification detected for asset {asset_id}: "
            f"expected status {expected_status.value} during {operation}"
        )
