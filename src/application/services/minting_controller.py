"""Minting Controller - certification request orchestration.

This service drives an asset through the certification state machine:

    uncertified -> minting -> {minted | failed}
    failed -> minting (caller-initiated retry)

The persisted ``cert_status`` is the only per-asset mutex: a mint is in
flight exactly when the status is ``minting``. No database transaction or
in-memory lock is held across the ledger call.

Developer Golden Rules:
1. AUTHORIZE FIRST - No load, no mutation before the capability check
2. PRE-FLIGHT BEFORE CLAIM - Configuration errors never mutate the asset
3. CAS FOR EVERY TRANSITION - Lost CAS means someone else owns the asset
4. NEVER STUCK - A claimed asset leaves minting before an error is raised,
   unless a broadcast transaction has no known outcome; it then stays
   minting with its pending hash until reconciliation resolves it
5. CHECK BEFORE RESUBMIT - A retry asks the ledger about the failed
   attempt's transaction before broadcasting another one
6. AUDIT IS OBSERVATIONAL - Audit append failures are logged, never fatal
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any

import structlog

from src.application.dtos.certification import CertificationResultDTO
from src.application.ports.access_control import AccessControlProtocol
from src.application.ports.asset_store import AssetStoreProtocol
from src.application.ports.audit_log import AuditLogProtocol
from src.application.ports.certification_metrics import CertificationMetricsProtocol
from src.application.ports.ledger_client import LedgerClientProtocol
from src.application.ports.time_authority import TimeAuthorityProtocol
from src.application.services.base import LoggingMixin
from src.application.services.ledger_error_classifier import LedgerErrorClassifier
from src.domain.errors.certification import (
    AssetNotFoundError,
    CertificationConflictError,
    CertificationError,
    ConfigurationError,
    UnclassifiedCertificationError,
)
from src.domain.errors.concurrent_modification import ConcurrentModificationError
from src.domain.errors.ledger import (
    LedgerConfigurationError,
    LedgerError,
    TransactionRevertedError,
)
from src.domain.models.audit_entry import AuditAction, AuditLogEntry
from src.domain.models.caller_context import AuthorizationDecision, CallerContext
from src.domain.models.certifiable_asset import (
    Certificate,
    CertifiableAsset,
    CertStatus,
    CertStatusUpdate,
    LedgerChain,
    TokenIdSource,
)
from src.domain.models.ledger_receipt import (
    LedgerReceipt,
    TokenIdFound,
    TokenIdNotFound,
    TransactionStatus,
)

DEFAULT_LEASE_SECONDS: int = 600

# Lost CAS rounds tolerated while recording a confirmed certificate.
PERSIST_ATTEMPTS: int = 5


class MintingController(LoggingMixin):
    """Orchestrates certification requests for certifiable assets.

    Attributes:
        _asset_store: Asset persistence with CAS status updates.
        _access_control: Owner / service-identity authorization.
        _audit_log: Append-only audit trail.
        _ledger_clients: One ledger client per supported chain.
        _time: Injected clock.
        _default_chain: Chain used when the request names none.
        _lease: Duration of the minting lease.
        _metrics: Optional metrics sink.
        _classifier: Maps ledger errors onto the certification taxonomy.
    """

    def __init__(
        self,
        asset_store: AssetStoreProtocol,
        access_control: AccessControlProtocol,
        audit_log: AuditLogProtocol,
        ledger_clients: Mapping[LedgerChain, LedgerClientProtocol],
        time_authority: TimeAuthorityProtocol,
        default_chain: LedgerChain = LedgerChain.POLYGON,
        lease_seconds: int = DEFAULT_LEASE_SECONDS,
        metrics: CertificationMetricsProtocol | None = None,
        classifier: LedgerErrorClassifier | None = None,
    ) -> None:
        """Initialize the minting controller.

        Args:
            asset_store: Store for certifiable assets.
            access_control: Authorization collaborator.
            audit_log: Audit trail collaborator.
            ledger_clients: Ledger client per chain.
            time_authority: Clock for timestamps and leases.
            default_chain: Chain to use when none is requested.
            lease_seconds: How long a claim holds the asset in minting
                before reconciliation may resolve it.
            metrics: Optional metrics sink. If None, metrics are skipped.
            classifier: Optional error classifier override.
        """
        self._asset_store = asset_store
        self._access_control = access_control
        self._audit_log = audit_log
        self._ledger_clients = dict(ledger_clients)
        self._time = time_authority
        self._default_chain = default_chain
        self._lease = timedelta(seconds=lease_seconds)
        self._metrics = metrics
        self._classifier = classifier or LedgerErrorClassifier()
        self._init_logger(component="certification")

    async def request_certification(
        self,
        asset_id: str,
        caller: CallerContext,
        requested_chain: LedgerChain | None = None,
    ) -> CertificationResultDTO:
        """Certify an asset on a ledger, at most once.

        Args:
            asset_id: Asset to certify.
            caller: Caller context (owner id and/or service credentials).
            requested_chain: Ledger to certify on; defaults to the
                configured default chain.

        Returns:
            CertificationResultDTO with the certificate. ``already_certified``
            is True when the asset was minted before this request.

        Raises:
            CertificationAuthorizationError: Caller may not certify the asset.
            AssetNotFoundError: Asset absent or outside caller visibility.
            CertificationConflictError: A mint is already in flight.
            ConfigurationError: Ledger configuration is unusable.
            TransactionError: The ledger interaction failed.
            UnclassifiedCertificationError: Any other failure.
        """
        try:
            result = await self._request_certification(
                asset_id, caller, requested_chain
            )
        except CertificationError as exc:
            self._record_outcome(exc.stage)
            raise
        except Exception as exc:
            self._log_operation("request_certification", asset_id=asset_id).exception(
                "certification_unexpected_error"
            )
            self._record_outcome(UnclassifiedCertificationError.stage)
            raise UnclassifiedCertificationError(str(exc) or type(exc).__name__) from exc
        self._record_outcome(
            "already_certified" if result.already_certified else "minted"
        )
        return result

    async def get_certification(
        self, asset_id: str, caller: CallerContext
    ) -> CertifiableAsset:
        """Return the current certification state of an asset.

        Raises:
            CertificationAuthorizationError: Caller may not see the asset.
            AssetNotFoundError: Asset absent or outside caller visibility.
        """
        decision = await self._access_control.authorize(caller, asset_id)
        asset = await self._asset_store.get(asset_id, decision.visibility_scope)
        if asset is None:
            raise AssetNotFoundError(asset_id)
        return asset

    async def _request_certification(
        self,
        asset_id: str,
        caller: CallerContext,
        requested_chain: LedgerChain | None,
    ) -> CertificationResultDTO:
        chain = requested_chain or self._default_chain
        log = self._log_operation(
            "request_certification", caller=caller, asset_id=asset_id, chain=chain.value
        )

        decision = await self._access_control.authorize(caller, asset_id)
        log = log.bind(actor_id=decision.actor_id, is_service=decision.is_service)

        asset = await self._asset_store.get(asset_id, decision.visibility_scope)
        if asset is None:
            log.info("certification_asset_not_found")
            raise AssetNotFoundError(asset_id)

        if asset.cert_status is CertStatus.MINTED:
            certificate = asset.certificate
            assert certificate is not None
            log.info("certification_already_minted", tx_hash=certificate.tx_hash)
            return CertificationResultDTO(
                asset=asset, certificate=certificate, already_certified=True
            )

        if asset.cert_status is CertStatus.MINTING:
            log.info("certification_conflict_in_progress")
            raise CertificationConflictError(asset_id)

        ledger = self._preflight(chain, log)

        if asset.cert_status is CertStatus.FAILED and asset.cert_last_tx_hash:
            recovered = await self._check_prior_attempt(asset, ledger, decision, log)
            if recovered is not None:
                return recovered

        claimed = await self._claim(asset, chain, log)
        await self._append_audit(
            asset_id,
            AuditAction.CERTIFICATION_REQUESTED,
            decision,
            {
                "type": asset.asset_type.value,
                "chain": chain.value,
                "retry": asset.cert_status is CertStatus.FAILED,
            },
        )

        signer = asset.owner_wallet_address or ledger.signer_address or ""
        broadcast: list[str] = []

        async def on_submitted(tx_hash: str) -> None:
            broadcast.append(tx_hash)
            log.info("ledger_tx_broadcast", tx_hash=tx_hash)
            await self._record_pending_tx(asset_id, tx_hash)

        started = self._time.monotonic()
        try:
            receipt = await ledger.certify(signer, asset_id, on_submitted=on_submitted)
        except Exception as exc:
            classified = self._classifier.classify(exc)
            tx_hash = getattr(exc, "tx_hash", None) or (broadcast[-1] if broadcast else None)
            log.warning(
                "certification_mint_failed",
                stage=classified.stage,
                code=classified.code,
                cause=type(exc).__name__,
                error=str(exc),
                tx_hash=tx_hash,
            )
            if tx_hash is not None and not isinstance(exc, TransactionRevertedError):
                await self._leave_unresolved(claimed, tx_hash, classified, decision, chain)
            else:
                await self._mark_failed(claimed, classified, decision, chain, tx_hash)
            raise classified

        if self._metrics is not None:
            self._metrics.observe_confirmation(
                chain.value, self._time.monotonic() - started
            )
        log.info(
            "ledger_tx_confirmed",
            tx_hash=receipt.tx_hash,
            block_number=receipt.block_number,
        )

        certificate = self._build_certificate(ledger, receipt, log)
        minted = await self._persist_certificate(claimed, certificate, decision, log)
        certificate = minted.certificate or certificate
        await self._append_audit(
            asset_id,
            AuditAction.CERTIFIED,
            decision,
            self._certified_details(asset, certificate),
        )
        log.info(
            "certification_completed",
            tx_hash=certificate.tx_hash,
            token_id=certificate.token_id,
        )
        return CertificationResultDTO(asset=minted, certificate=certificate)

    def _preflight(
        self, chain: LedgerChain, log: structlog.BoundLogger
    ) -> LedgerClientProtocol:
        """Resolve and validate the ledger client before any mutation."""
        ledger = self._ledger_clients.get(chain)
        if ledger is None:
            log.error("certification_unsupported_chain")
            raise ConfigurationError(
                f"No ledger client configured for {chain.value}",
                code=ConfigurationError.UNSUPPORTED_CHAIN,
            )
        try:
            ledger.validate_configuration()
        except LedgerConfigurationError as exc:
            classified = self._classifier.classify(exc)
            log.error(
                "certification_configuration_invalid",
                code=classified.code,
                setting=exc.setting,
            )
            raise classified from exc
        return ledger

    async def _claim(
        self, asset: CertifiableAsset, chain: LedgerChain, log: structlog.BoundLogger
    ) -> CertifiableAsset:
        """CAS the asset from its observed status into minting."""
        now = self._time.utcnow()
        try:
            claimed = await self._asset_store.conditional_update(
                asset.id,
                asset.cert_status,
                CertStatusUpdate.claim(chain, now, now + self._lease),
            )
        except ConcurrentModificationError as exc:
            log.info("certification_claim_lost", observed=asset.cert_status.value)
            raise CertificationConflictError(asset.id) from exc
        log.info(
            "certification_claimed",
            previous_status=asset.cert_status.value,
            lease_expires_at=claimed.cert_lease_expires_at.isoformat()
            if claimed.cert_lease_expires_at
            else None,
        )
        return claimed

    async def _check_prior_attempt(
        self,
        asset: CertifiableAsset,
        ledger: LedgerClientProtocol,
        decision: AuthorizationDecision,
        log: structlog.BoundLogger,
    ) -> CertificationResultDTO | None:
        """Ask the ledger about the failed attempt before broadcasting again.

        Returns:
            The recorded certificate when the earlier transaction confirmed
            after all, or None when a new submission may go ahead.

        Raises:
            CertificationConflictError: The earlier transaction is still pending.
            TransactionError: The ledger could not be asked.
        """
        prior_tx_hash = asset.cert_last_tx_hash
        assert prior_tx_hash is not None
        if asset.cert_chain is not None:
            ledger = self._ledger_clients.get(asset.cert_chain, ledger)
        log = log.bind(prior_tx_hash=prior_tx_hash)

        try:
            status, receipt = await ledger.get_transaction_status(prior_tx_hash)
        except LedgerError as exc:
            log.warning("certification_prior_tx_status_unavailable", error=str(exc))
            raise self._classifier.classify(exc) from exc

        if status is TransactionStatus.PENDING:
            log.info("certification_prior_tx_pending")
            raise CertificationConflictError(asset.id)
        if status is not TransactionStatus.CONFIRMED or receipt is None:
            log.info("certification_prior_tx_not_confirmed", status=status.value)
            return None

        log.warning("certification_prior_tx_confirmed")
        claimed = await self._claim(asset, ledger.chain, log)
        certificate = self._build_certificate(ledger, receipt, log)
        minted = await self._persist_certificate(claimed, certificate, decision, log)
        certificate = minted.certificate or certificate
        details = self._certified_details(asset, certificate)
        details["recovered"] = True
        await self._append_audit(asset.id, AuditAction.CERTIFIED, decision, details)
        return CertificationResultDTO(
            asset=minted, certificate=certificate, already_certified=True
        )

    def _build_certificate(
        self, ledger: LedgerClientProtocol, receipt: LedgerReceipt, log: structlog.BoundLogger
    ) -> Certificate:
        try:
            decoded = ledger.decode_token_id(receipt)
        except Exception as exc:
            decoded = TokenIdNotFound(reason=f"decode error: {exc}")
        if isinstance(decoded, TokenIdFound):
            token_id = decoded.token_id
            source = TokenIdSource.EVENT
        else:
            token_id = self._fallback_token_id(self._time.utcnow())
            source = TokenIdSource.FALLBACK
            log.warning(
                "certification_token_id_fallback",
                tx_hash=receipt.tx_hash,
                reason=decoded.reason,
                fallback_token_id=token_id,
            )
            if self._metrics is not None:
                self._metrics.record_fallback_identifier(ledger.chain.value)
        return Certificate(
            chain=ledger.chain,
            tx_hash=receipt.tx_hash,
            token_id=token_id,
            explorer_url=ledger.explorer_url(receipt.tx_hash),
            contract_reference=ledger.contract_reference,
            token_id_source=source,
        )

    @staticmethod
    def _fallback_token_id(now: datetime) -> str:
        """Locally generated identifier: epoch milliseconds."""
        return str(int(now.timestamp() * 1000))

    async def _persist_certificate(
        self,
        claimed: CertifiableAsset,
        certificate: Certificate,
        decision: AuthorizationDecision,
        log: structlog.BoundLogger,
    ) -> CertifiableAsset:
        """Record a confirmed certificate, whoever holds the asset now.

        The transaction is confirmed on-chain at this point, so the off-chain
        record must end up minted. If the reconciliation sweep already
        resolved the asset to minted, its record stands. If it was resolved
        to failed, the asset is re-claimed and minted with this certificate.
        If a retry has claimed it since, the confirmed certificate is
        recorded over that claim.
        """
        expected = CertStatus.MINTING
        current: CertifiableAsset | None = None
        for _ in range(PERSIST_ATTEMPTS):
            now = self._time.utcnow()
            try:
                if expected.is_claimable():
                    await self._asset_store.conditional_update(
                        claimed.id,
                        expected,
                        CertStatusUpdate.claim(certificate.chain, now, now + self._lease),
                    )
                return await self._asset_store.conditional_update(
                    claimed.id, CertStatus.MINTING, CertStatusUpdate.minted(certificate, now)
                )
            except ConcurrentModificationError:
                current = await self._asset_store.get(claimed.id, None)
            except Exception as exc:
                log.error(
                    "certification_persist_failed",
                    tx_hash=certificate.tx_hash,
                    error=str(exc),
                )
                await self._audit_unrecorded(claimed, certificate, decision)
                raise UnclassifiedCertificationError(
                    "Certificate confirmed on-chain but could not be recorded"
                ) from exc

            if current is None:
                break
            if current.cert_status is CertStatus.MINTED:
                log.warning(
                    "certification_already_resolved",
                    recorded_tx_hash=current.cert_tx_hash,
                    tx_hash=certificate.tx_hash,
                )
                return current
            if current.cert_status is CertStatus.MINTING:
                log.warning(
                    "certification_recorded_over_concurrent_claim",
                    concurrent_tx_hash=current.cert_pending_tx_hash,
                    tx_hash=certificate.tx_hash,
                )
            else:
                log.warning(
                    "certification_resolved_failed_reclaiming",
                    current_status=current.cert_status.value,
                    tx_hash=certificate.tx_hash,
                )
            expected = current.cert_status

        log.error(
            "certification_state_lost",
            tx_hash=certificate.tx_hash,
            current_status=current.cert_status.value if current else None,
        )
        await self._audit_unrecorded(claimed, certificate, decision)
        raise UnclassifiedCertificationError(
            "Certificate confirmed on-chain but the asset state changed concurrently"
        )

    async def _mark_failed(
        self,
        claimed: CertifiableAsset,
        error: CertificationError,
        decision: AuthorizationDecision,
        chain: LedgerChain,
        tx_hash: str | None = None,
    ) -> None:
        """Drive a claimed asset to failed and audit the failure."""
        log = self._log_operation("mark_failed", asset_id=claimed.id)
        try:
            await self._asset_store.conditional_update(
                claimed.id,
                CertStatus.MINTING,
                CertStatusUpdate.failed(self._time.utcnow(), last_tx_hash=tx_hash),
            )
        except ConcurrentModificationError:
            log.warning("certification_failure_already_resolved")
        except Exception as exc:
            # Lease expiry hands the asset to the reconciliation sweep.
            log.error("certification_mark_failed_error", error=str(exc))

        details = self._failure_details(claimed, error, chain)
        if tx_hash:
            details["tx_hash"] = tx_hash
        await self._append_audit(
            claimed.id, AuditAction.CERTIFICATION_FAILED, decision, details
        )

    async def _leave_unresolved(
        self,
        claimed: CertifiableAsset,
        tx_hash: str,
        error: CertificationError,
        decision: AuthorizationDecision,
        chain: LedgerChain,
    ) -> None:
        """Keep a broadcast transaction with no known outcome in minting.

        The asset keeps its pending hash and lease, so further requests are
        rejected as in progress until the reconciliation sweep finds the
        transaction confirmed, reverted or dropped.
        """
        await self._record_pending_tx(claimed.id, tx_hash)
        self._log_operation(
            "leave_unresolved", asset_id=claimed.id, tx_hash=tx_hash
        ).warning(
            "certification_outcome_unknown",
            lease_expires_at=claimed.cert_lease_expires_at.isoformat()
            if claimed.cert_lease_expires_at
            else None,
        )
        details = self._failure_details(claimed, error, chain)
        details["tx_hash"] = tx_hash
        await self._append_audit(
            claimed.id, AuditAction.CERTIFICATION_OUTCOME_UNKNOWN, decision, details
        )

    async def _audit_unrecorded(
        self,
        claimed: CertifiableAsset,
        certificate: Certificate,
        decision: AuthorizationDecision,
    ) -> None:
        """Leave a trace of a confirmed certificate that could not be recorded."""
        details = self._certified_details(claimed, certificate)
        details["recorded"] = False
        await self._append_audit(
            claimed.id, AuditAction.CERTIFICATION_FAILED, decision, details
        )

    @staticmethod
    def _certified_details(
        asset: CertifiableAsset, certificate: Certificate
    ) -> dict[str, Any]:
        return {
            "type": asset.asset_type.value,
            "chain": certificate.chain.value,
            "tx_hash": certificate.tx_hash,
            "token_id": certificate.token_id,
            "token_id_source": certificate.token_id_source.value,
            "explorer_url": certificate.explorer_url,
        }

    @staticmethod
    def _failure_details(
        asset: CertifiableAsset, error: CertificationError, chain: LedgerChain
    ) -> dict[str, Any]:
        return {
            "type": asset.asset_type.value,
            "chain": chain.value,
            "stage": error.stage,
            "code": error.code,
            "message": error.message,
        }

    async def _record_pending_tx(self, asset_id: str, tx_hash: str) -> None:
        try:
            await self._asset_store.record_pending_tx(asset_id, tx_hash)
        except Exception as exc:
            self._log_operation(
                "record_pending_tx", asset_id=asset_id, tx_hash=tx_hash
            ).error("pending_tx_record_failed", error=str(exc))

    async def _append_audit(
        self,
        asset_id: str,
        action: AuditAction,
        decision: AuthorizationDecision,
        details: dict[str, Any],
    ) -> None:
        entry = AuditLogEntry(
            asset_id=asset_id,
            action=action,
            actor_id=decision.actor_id,
            timestamp=self._time.utcnow(),
            details=details,
        )
        try:
            await self._audit_log.append(entry)
        except Exception as exc:
            self._log_operation(
                "append_audit", asset_id=asset_id, action=action.value
            ).error("audit_append_failed", error=str(exc))

    def _record_outcome(self, outcome: str) -> None:
        if self._metrics is not None:
            self._metrics.record_request(outcome)
