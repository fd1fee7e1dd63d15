"""Infrastructure adapters for asset certification.

Adapters implement the ports defined in the application layer:
- ledger: EVM ledger client (web3)
- persistence: PostgreSQL asset store and audit log (SQLAlchemy async)
- access: Service-token access control
"""

__all__: list[str] = []
