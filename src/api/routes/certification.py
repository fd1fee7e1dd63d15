"""Certification API routes.

FastAPI router for requesting and inspecting ledger certification of
assets. Caller identity is asserted by the upstream gateway:
X-Caller-Id for owners, Authorization: Bearer for the service identity.

Developer Golden Rules:
1. THIN ROUTES - All state decisions live in MintingController
2. FAIL LOUD - Every taxonomy error maps to a status and a stable code
3. NO SWALLOWING - Unexpected errors reach the controller's unclassified path
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from src.api.dependencies.certification import (
    get_caller_context,
    get_minting_controller,
)
from src.api.models.certification import (
    AssetCertificationModel,
    CertificateModel,
    CertificationErrorResponse,
    CertificationRequest,
    CertificationResponse,
    CertificationStatusResponse,
)
from src.application.services.minting_controller import MintingController
from src.domain.errors.certification import CertificationError
from src.domain.models.caller_context import CallerContext
from src.domain.models.certifiable_asset import (
    Certificate,
    CertifiableAsset,
    LedgerChain,
)

router = APIRouter(prefix="/v1/certifications", tags=["certifications"])

STAGE_STATUS_CODES: dict[str, int] = {
    "auth": 403,
    "load": 404,
    "claim": 409,
    "config": 500,
    "mint": 502,
    "unknown": 500,
}

_ERROR_RESPONSES = {
    403: {"model": CertificationErrorResponse, "description": "Not authorized"},
    404: {"model": CertificationErrorResponse, "description": "Asset not found"},
    500: {
        "model": CertificationErrorResponse,
        "description": "Configuration or unclassified failure",
    },
}


def _asset_model(asset: CertifiableAsset) -> AssetCertificationModel:
    return AssetCertificationModel(
        id=asset.id,
        owner_id=asset.owner_id,
        asset_type=asset.asset_type.value,
        cert_status=asset.cert_status.value,
        cert_chain=asset.cert_chain.value if asset.cert_chain else None,
        cert_tx_hash=asset.cert_tx_hash,
        cert_token_id=asset.cert_token_id,
        cert_token_id_source=(
            asset.cert_token_id_source.value if asset.cert_token_id_source else None
        ),
        cert_explorer_url=asset.cert_explorer_url,
        cert_contract_address=asset.cert_contract_address,
        cert_pending_tx_hash=asset.cert_pending_tx_hash,
        cert_last_tx_hash=asset.cert_last_tx_hash,
        cert_lease_expires_at=asset.cert_lease_expires_at,
        cert_created_at=asset.cert_created_at,
        cert_updated_at=asset.cert_updated_at,
    )


def _certificate_model(certificate: Certificate) -> CertificateModel:
    return CertificateModel(**certificate.to_dict())


def error_response(error: CertificationError) -> JSONResponse:
    """Render a taxonomy error with its HTTP status."""
    return JSONResponse(
        status_code=STAGE_STATUS_CODES.get(error.stage, 500),
        content=error.to_payload(),
    )


@router.post(
    "",
    response_model=CertificationResponse,
    responses={
        **_ERROR_RESPONSES,
        409: {
            "model": CertificationErrorResponse,
            "description": "Certification already in progress",
        },
        502: {
            "model": CertificationErrorResponse,
            "description": "Ledger transaction failed",
        },
    },
    summary="Certify an asset on a ledger",
    description=(
        "Mint a certificate for the asset. Idempotent: an asset that is "
        "already certified returns its existing certificate."
    ),
)
async def request_certification(
    request_data: CertificationRequest,
    caller: CallerContext = Depends(get_caller_context),
    controller: MintingController = Depends(get_minting_controller),
) -> CertificationResponse | JSONResponse:
    """Certify an asset, or return its existing certificate."""
    chain = LedgerChain(request_data.chain.value) if request_data.chain else None
    try:
        result = await controller.request_certification(
            request_data.asset_id, caller, requested_chain=chain
        )
    except CertificationError as e:
        return error_response(e)

    return CertificationResponse(
        already_certified=result.already_certified,
        asset=_asset_model(result.asset),
        certificate=_certificate_model(result.certificate),
    )


@router.get(
    "/{asset_id}",
    response_model=CertificationStatusResponse,
    responses=_ERROR_RESPONSES,
    summary="Get the certification state of an asset",
)
async def get_certification(
    asset_id: str,
    caller: CallerContext = Depends(get_caller_context),
    controller: MintingController = Depends(get_minting_controller),
) -> CertificationStatusResponse | JSONResponse:
    """Return the asset's certification status and certificate, if minted."""
    try:
        asset = await controller.get_certification(asset_id, caller)
    except CertificationError as e:
        return error_response(e)

    certificate = asset.certificate
    return CertificationStatusResponse(
        asset=_asset_model(asset),
        certificate=_certificate_model(certificate) if certificate else None,
    )
