"""
Infrastructure layer - External adapters for asset certification.

This layer contains:
- PostgreSQL adapters (asset store, audit log)
- EVM ledger adapter (signing, submission, confirmation)
- Access control, observability and monitoring

IMPORT RULES:
- CAN import from: domain, application
- Implements ports defined in application layer
"""
