"""
API models (Pydantic DTOs) for asset certification.

This module contains all Pydantic request/response models
used by API endpoints.
"""

from src.api.models.certification import (
    AssetCertificationModel,
    CertificateModel,
    CertificationErrorResponse,
    CertificationRequest,
    CertificationResponse,
    CertificationStatusResponse,
    ChainEnum,
)
from src.api.models.health import HealthResponse

__all__: list[str] = [
    "AssetCertificationModel",
    "CertificateModel",
    "CertificationErrorResponse",
    "CertificationRequest",
    "CertificationResponse",
    "CertificationStatusResponse",
    "ChainEnum",
    "HealthResponse",
]
