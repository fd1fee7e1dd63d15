"""Domain errors for asset certification.

Provides specific exception classes for different failure scenarios.
All exceptions inherit from CertificationDomainError.
"""

from src.domain.errors.certification import (
    AssetNotFoundError,
    CertificationAuthorizationError,
    CertificationConflictError,
    CertificationError,
    ConfigurationError,
    TransactionError,
    UnclassifiedCertificationError,
)
from src.domain.errors.concurrent_modification import ConcurrentModificationError
from src.domain.errors.ledger import (
    BroadcastError,
    ConfirmationTimeoutError,
    InsufficientFundsError,
    LedgerConfigurationError,
    LedgerError,
    MalformedContractAddressError,
    MalformedSigningKeyError,
    MissingRpcEndpointError,
    MissingSigningKeyError,
    NonceCollisionError,
    TransactionRevertedError,
    TransactionUnderpricedError,
    UnsupportedChainError,
)
from src.domain.errors.state_transition import (
    AssetAlreadyCertifiedError,
    InvalidCertStatusTransitionError,
)

__all__: list[str] = [
    "AssetAlreadyCertifiedError",
    "AssetNotFoundError",
    "BroadcastError",
    "CertificationAuthorizationError",
    "CertificationConflictError",
    "CertificationError",
    "ConcurrentModificationError",
    "ConfigurationError",
    "ConfirmationTimeoutError",
    "InsufficientFundsError",
    "InvalidCertStatusTransitionError",
    "LedgerConfigurationError",
    "LedgerError",
    "MalformedContractAddressError",
    "MalformedSigningKeyError",
    "MissingRpcEndpointError",
    "MissingSigningKeyError",
    "NonceCollisionError",
    "TransactionError",
    "TransactionRevertedError",
    "TransactionUnderpricedError",
    "UnclassifiedCertificationError",
    "UnsupportedChainError",
]
