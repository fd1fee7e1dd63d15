"""
Domain layer - Pure business logic for asset certification.

This layer contains:
- Domain entities (CertifiableAsset, Certificate, AuditLogEntry)
- Value objects (immutable types)
- Domain exceptions (certification taxonomy, ledger errors)

CRITICAL: This layer must NOT import from application, infrastructure, or api.
Only stdlib and typing imports are allowed.
"""

from src.domain.errors import CertificationError, LedgerError
from src.domain.exceptions import CertificationDomainError
from src.domain.models import CertifiableAsset, CertStatus

__all__: list[str] = [
    "CertStatus",
    "CertifiableAsset",
    "CertificationDomainError",
    "CertificationError",
    "LedgerError",
]
