"""Application DTOs (Data Transfer Objects).

These DTOs carry results across layer boundaries. They are distinct from:
- Domain models (immutable business objects)
- API models (Pydantic models for serialization)
"""

from src.application.dtos.certification import (
    CertificationResultDTO,
    ReconciliationReportDTO,
    ReconfirmationReportDTO,
)

__all__ = [
    "CertificationResultDTO",
    "ReconciliationReportDTO",
    "ReconfirmationReportDTO",
]
