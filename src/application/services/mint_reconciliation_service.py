"""Mint Reconciliation Service - resolves assets stuck in minting.

A request handler that dies between claiming an asset and recording the
outcome (process crash, cancelled request, store outage) leaves the asset
in ``minting``. Every claim carries a lease; once it lapses, this service
asks the ledger what actually happened and resolves the asset:

- CONFIRMED -> minted (certificate recorded from the receipt)
- REVERTED / UNKNOWN / never broadcast -> failed (caller may retry)
- PENDING -> lease extended, re-examined on a later sweep

It also re-reads receipts for certificates minted with a locally generated
fallback identifier and replaces the identifier once the event decodes.

Usage:
    service = MintReconciliationService(asset_store, audit_log, ledger_clients, time)
    report = await service.sweep_stuck_mints()
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import timedelta
from typing import Any

import structlog

from src.application.dtos.certification import (
    ReconciliationReportDTO,
    ReconfirmationReportDTO,
)
from src.application.ports.asset_store import AssetStoreProtocol
from src.application.ports.audit_log import AuditLogProtocol
from src.application.ports.certification_metrics import CertificationMetricsProtocol
from src.application.ports.ledger_client import LedgerClientProtocol
from src.application.ports.time_authority import TimeAuthorityProtocol
from src.application.services.base import LoggingMixin
from src.domain.errors.concurrent_modification import ConcurrentModificationError
from src.domain.errors.ledger import LedgerError
from src.domain.models.audit_entry import AuditAction, AuditLogEntry
from src.domain.models.certifiable_asset import (
    Certificate,
    CertifiableAsset,
    CertStatus,
    CertStatusUpdate,
    LedgerChain,
    TokenIdSource,
)
from src.domain.models.ledger_receipt import TokenIdFound, TransactionStatus

RECONCILER_ACTOR_ID: str = "system:mint-reconciler"
DEFAULT_SWEEP_LIMIT: int = 100


class MintReconciliationService(LoggingMixin):
    """Resolves expired minting leases against on-chain truth.

    Attributes:
        _asset_store: Asset persistence.
        _audit_log: Audit trail.
        _ledger_clients: Ledger client per chain.
        _time: Injected clock.
        _lease: Extension granted to still-pending transactions.
        _metrics: Optional metrics sink.
    """

    def __init__(
        self,
        asset_store: AssetStoreProtocol,
        audit_log: AuditLogProtocol,
        ledger_clients: Mapping[LedgerChain, LedgerClientProtocol],
        time_authority: TimeAuthorityProtocol,
        lease_seconds: int = 600,
        metrics: CertificationMetricsProtocol | None = None,
    ) -> None:
        self._asset_store = asset_store
        self._audit_log = audit_log
        self._ledger_clients = dict(ledger_clients)
        self._time = time_authority
        self._lease = timedelta(seconds=lease_seconds)
        self._metrics = metrics
        self._init_logger(component="certification")

    async def sweep_stuck_mints(
        self, limit: int = DEFAULT_SWEEP_LIMIT
    ) -> ReconciliationReportDTO:
        """Resolve every minting asset whose lease has expired.

        Args:
            limit: Maximum number of assets to examine in this sweep.

        Returns:
            ReconciliationReportDTO with per-resolution counts.
        """
        log = self._log_operation("sweep_stuck_mints", limit=limit)
        now = self._time.utcnow()
        expired = await self._asset_store.list_expired_minting(now, limit=limit)
        log.info("reconciliation_sweep_started", expired_count=len(expired))

        counts = {"minted": 0, "failed": 0, "extended": 0, "skipped": 0}
        for asset in expired:
            resolution = await self._reconcile(asset)
            counts[resolution] += 1
            if self._metrics is not None:
                self._metrics.record_reconciliation(resolution)

        report = ReconciliationReportDTO(examined=len(expired), **counts)
        log.info(
            "reconciliation_sweep_completed",
            examined=report.examined,
            minted=report.minted,
            failed=report.failed,
            extended=report.extended,
            skipped=report.skipped,
        )
        return report

    async def reconfirm_identifiers(
        self, limit: int = DEFAULT_SWEEP_LIMIT
    ) -> ReconfirmationReportDTO:
        """Replace fallback identifiers with ones decoded from the receipt.

        Args:
            limit: Maximum number of certificates to re-check.

        Returns:
            ReconfirmationReportDTO with counts.
        """
        log = self._log_operation("reconfirm_identifiers", limit=limit)
        candidates = await self._asset_store.list_fallback_identifiers(limit=limit)
        reconfirmed = 0

        for asset in candidates:
            asset_log = log.bind(asset_id=asset.id, tx_hash=asset.cert_tx_hash)
            ledger = self._ledger_for(asset)
            if ledger is None or asset.cert_tx_hash is None:
                asset_log.warning("reconfirm_no_ledger_client")
                continue
            try:
                status, receipt = await ledger.get_transaction_status(
                    asset.cert_tx_hash
                )
            except LedgerError as exc:
                asset_log.warning("reconfirm_status_query_failed", error=str(exc))
                continue
            if status is not TransactionStatus.CONFIRMED or receipt is None:
                asset_log.warning("reconfirm_receipt_unavailable", status=status.value)
                continue

            decoded = ledger.decode_token_id(receipt)
            if not isinstance(decoded, TokenIdFound):
                asset_log.info("reconfirm_event_still_missing", reason=decoded.reason)
                continue

            try:
                await self._asset_store.replace_token_id(
                    asset.id, decoded.token_id, self._time.utcnow()
                )
            except ConcurrentModificationError:
                asset_log.info("reconfirm_already_replaced")
                continue

            reconfirmed += 1
            asset_log.info(
                "certificate_identifier_reconfirmed",
                previous_token_id=asset.cert_token_id,
                token_id=decoded.token_id,
            )
            await self._append_audit(
                asset,
                AuditAction.CERTIFICATE_IDENTIFIER_RECONFIRMED,
                {
                    "tx_hash": asset.cert_tx_hash,
                    "previous_token_id": asset.cert_token_id,
                    "token_id": decoded.token_id,
                },
            )

        return ReconfirmationReportDTO(
            examined=len(candidates),
            reconfirmed=reconfirmed,
            unresolved=len(candidates) - reconfirmed,
        )

    async def _reconcile(self, asset: CertifiableAsset) -> str:
        log = self._log_operation(
            "reconcile",
            asset_id=asset.id,
            pending_tx_hash=asset.cert_pending_tx_hash,
        )
        ledger = self._ledger_for(asset)

        if asset.cert_pending_tx_hash is None:
            return await self._resolve_failed(asset, "not_broadcast", log)
        if ledger is None:
            return await self._resolve_failed(asset, "no_ledger_client", log)

        try:
            status, receipt = await ledger.get_transaction_status(
                asset.cert_pending_tx_hash
            )
        except LedgerError as exc:
            # Without an answer from the ledger the asset stays minting.
            log.warning("reconcile_status_query_failed", error=str(exc))
            return "skipped"

        if status is TransactionStatus.PENDING:
            return await self._extend(asset, log)

        if status is TransactionStatus.CONFIRMED and receipt is not None:
            decoded = ledger.decode_token_id(receipt)
            now = self._time.utcnow()
            if isinstance(decoded, TokenIdFound):
                token_id, source = decoded.token_id, TokenIdSource.EVENT
            else:
                token_id = str(int(now.timestamp() * 1000))
                source = TokenIdSource.FALLBACK
                log.warning("reconcile_token_id_fallback", reason=decoded.reason)
                if self._metrics is not None:
                    self._metrics.record_fallback_identifier(ledger.chain.value)
            certificate = Certificate(
                chain=ledger.chain,
                tx_hash=receipt.tx_hash,
                token_id=token_id,
                explorer_url=ledger.explorer_url(receipt.tx_hash),
                contract_reference=ledger.contract_reference,
                token_id_source=source,
            )
            try:
                await self._asset_store.conditional_update(
                    asset.id, CertStatus.MINTING, CertStatusUpdate.minted(certificate, now)
                )
            except ConcurrentModificationError:
                log.info("reconcile_already_resolved")
                return "skipped"
            log.info("reconcile_resolved_minted", tx_hash=receipt.tx_hash)
            await self._append_audit(
                asset,
                AuditAction.CERTIFICATION_RECONCILED,
                {
                    "resolution": "minted",
                    "chain": ledger.chain.value,
                    "tx_hash": certificate.tx_hash,
                    "token_id": certificate.token_id,
                    "token_id_source": source.value,
                    "explorer_url": certificate.explorer_url,
                },
            )
            return "minted"

        return await self._resolve_failed(asset, status.value, log)

    async def _resolve_failed(
        self, asset: CertifiableAsset, reason: str, log: structlog.BoundLogger
    ) -> str:
        try:
            await self._asset_store.conditional_update(
                asset.id,
                CertStatus.MINTING,
                CertStatusUpdate.failed(
                    self._time.utcnow(), last_tx_hash=asset.cert_pending_tx_hash
                ),
            )
        except ConcurrentModificationError:
            log.info("reconcile_already_resolved")
            return "skipped"
        log.info("reconcile_resolved_failed", reason=reason)
        details: dict[str, Any] = {"resolution": "failed", "reason": reason}
        if asset.cert_pending_tx_hash:
            details["tx_hash"] = asset.cert_pending_tx_hash
        await self._append_audit(asset, AuditAction.CERTIFICATION_RECONCILED, details)
        return "failed"

    async def _extend(
        self, asset: CertifiableAsset, log: structlog.BoundLogger
    ) -> str:
        expires_at = self._time.utcnow() + self._lease
        try:
            await self._asset_store.extend_lease(asset.id, expires_at)
        except ConcurrentModificationError:
            log.info("reconcile_already_resolved")
            return "skipped"
        log.info("reconcile_lease_extended", lease_expires_at=expires_at.isoformat())
        return "extended"

    def _ledger_for(self, asset: CertifiableAsset) -> LedgerClientProtocol | None:
        if asset.cert_chain is None:
            return None
        return self._ledger_clients.get(asset.cert_chain)

    async def _append_audit(
        self,
        asset: CertifiableAsset,
        action: AuditAction,
        details: dict[str, Any],
    ) -> None:
        entry = AuditLogEntry(
            asset_id=asset.id,
            action=action,
            actor_id=RECONCILER_ACTOR_ID,
            timestamp=self._time.utcnow(),
            details=details,
        )
        try:
            await self._audit_log.append(entry)
        except Exception as exc:
            self._log_operation(
                "append_audit", asset_id=asset.id, action=action.value
            ).error("audit_append_failed", error=str(exc))
